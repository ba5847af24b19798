'''
A synchronous generator produces its values on demand: the body only
runs (up to the next `yield`) when the consumer asks for the next
value.

'''
import random
from typing import Iterator


random_generator = random.SystemRandom()


def my_synchronous_iterator(count: int) -> Iterator[int]:
    print(f'Initialize a synchronous iterator for {count} items')
    for _ in range(count):
        v: int = random_generator.randrange(100)
        print(f'Generate the new value {v}')
        yield v


def main():
    iterator = my_synchronous_iterator(10)

    # nothing printed until here
    n: int = 0
    for n, v in enumerate(iterator, start=1):
        print(f'- [{n}] The value {v} was extracted from the iterator')

    assert n == 10


if __name__ == '__main__':
    main()
