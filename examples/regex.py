'''
Regular expressions: test, find all matches and walk their captured
groups.

'''
import re

from playground.log import colorize


def show_matches(
    r: str,
    s: str,
    with_length: bool = False,
) -> list[re.Match]:
    print(colorize('----------------------'))
    exp = re.compile(r)
    print(f"Does '{s}' match '{r}': {exp.search(s) is not None}")
    matches: list[re.Match] = list(exp.finditer(s))
    print(f'Number of matches: {len(matches)}')

    for n, m in enumerate(matches):
        print('The string matches the regular expression.')
        ngroups: int = len(m.groups())
        print(f'  [match {n}] : number of captured groups: {ngroups}')
        for g in range(ngroups + 1):
            if with_length:
                print(f'    [{g}] {len(m.group(g))} -> {m.group(g)}')
            else:
                print(f'    [{g}] -> {m.group(g)}')

    return matches


def main():
    assert len(show_matches(r'(^a.)', 'abc')) == 1
    assert len(show_matches(r'(a.)', 'abcdazerty aa')) == 3
    assert len(
        show_matches(
            r'(a.)(x..)(z\d)',
            'a1x00z9cvbfa2x33z8a3',
            with_length=True,
        )
    ) == 2

    r: str = r'(^(/[\w]+)+/web($|/))'
    urls: list[str] = [
        '/p/web/',
        '/path/web',
        '/path/web/a',
        '/path/web/a/',
        '/path/web/a/c',
    ]
    for url in urls:
        show_matches(r, url, with_length=True)


if __name__ == '__main__':
    main()
