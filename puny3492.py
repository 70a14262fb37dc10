#!/usr/bin/env python
# -*- coding: utf-8 -*-

# Copyright (C) 2022 by Amazon Web Services <colm@amazon.com>
#
# puny3492.py is derived from a PunyCode parser by Ben Noordhuis at
# https://gist.github.com/bnoordhuis/1035947
#

# Copyright (C) 2011 by Ben Noordhuis <info@bnoordhuis.nl>
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in
# all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN
# THE SOFTWARE.

"""Punycode (RFC 3492) encoder and decoder.

All arithmetic on delta, n and the digit weight is carried out as if in a
32-bit unsigned register: anything that would go past MAXINT raises
PunyOverflowError instead of wrapping around.
"""

import logging

import click

__version__ = '1.0.0'

TMIN = 1
TMAX = 26
BASE = 36
SKEW = 38
DAMP = 700 # initial bias adaptation
INITIAL_N = 128
INITIAL_BIAS = 72
DELIMITER = '-'

MAXINT = 0xFFFFFFFF # width of the delta/n/weight registers
MAX_UNICODE = 0x10FFFF

assert 0 <= TMIN <= TMAX <= (BASE - 1)
assert 1 <= SKEW
assert 2 <= DAMP
assert (INITIAL_BIAS % BASE) <= (BASE - TMIN) # always true if TMIN=1

_LOGGER = logging.getLogger(__name__)


class Error(Exception):
    pass

class PunyOverflowError(Error, OverflowError):
    pass

class InvalidInputError(Error, ValueError):
    pass


def checked_add(a, b):
    if b > MAXINT - a:
        raise PunyOverflowError('Arithmetic overflow')
    return a + b

def checked_mul(a, b):
    if b and a > MAXINT // b:
        raise PunyOverflowError('Arithmetic overflow')
    return a * b

def basic(c):
    return c < 128

def encode_digit(d):
    return d + (97 if d < 26 else 22)

def decode_digit(d):
    if d >= 48 and d <= 57:
        return d - 22 # 0..9
    if d >= 65 and d <= 90:
        return d - 65 # A..Z
    if d >= 97 and d <= 122:
        return d - 97 # a..z
    raise InvalidInputError('Illegal digit #%d' % d)

def code_points(input):
    """Turn a str, bytes or iterable of ints into a list of code points."""
    if isinstance(input, str):
        return [ord(c) for c in input]

    points = list(input)
    for c in points:
        if c < 0:
            raise InvalidInputError('Negative code point %d' % c)
        if c > MAXINT:
            raise PunyOverflowError('Code point 0x%X exceeds 0x%X' % (c, MAXINT))
    return points

def adapt_bias(delta, n_points, is_first):
    # scale back, then increase delta
    delta //= DAMP if is_first else 2
    delta += delta // n_points

    s = (BASE - TMIN)
    t = (s * TMAX) // 2 # threshold=455
    k = 0

    while delta > t:
        delta //= s
        k += BASE

    a = (BASE - TMIN + 1) * delta
    b = (delta + SKEW)

    return k + (a // b)

def threshold(k, bias):
    """Calculate the new threshold."""
    if k <= bias + TMIN:
        return TMIN
    if k >= bias + TMAX:
        return TMAX
    return k - bias

def encode_int(bias, delta):
    """Encode bias and delta to a generalized variable-length integer."""
    result = []

    k = BASE
    q = delta

    while True:
        t = threshold(k, bias)
        if q < t:
            result.append(encode_digit(q))
            break
        else:
            c = t + ((q - t) % (BASE - t))
            q = (q - t) // (BASE - t)
            k += BASE
            result.append(encode_digit(c))

    return result

def decode_int(input, pos, bias, i):
    """Read one generalized variable-length integer starting at input[pos].

    The integer is added to the running index ``i``; returns the new ``i``
    and the position just past the last digit consumed.
    """
    w = 1
    k = BASE

    while True:
        if pos >= len(input):
            raise InvalidInputError('Truncated variable-length integer')

        digit = decode_digit(input[pos])
        pos += 1

        i = checked_add(i, digit * w)

        t = threshold(k, bias)
        if digit < t:
            return i, pos

        w = checked_mul(w, BASE - t)
        k += BASE

def encode(text):
    """Encode a str (or an iterable of int code points) as a Punycode label.

    Integer code points may go past U+10FFFF, up to MAXINT; large values
    are what drive delta into PunyOverflowError.
    """
    input = code_points(text)
    output = [c for c in input if basic(c)]

    # remember how many basic code points there are
    b = h = len(output)

    if output:
        output.append(ord(DELIMITER))

    if h == len(input):
        return ''.join(chr(c) for c in output)

    n = INITIAL_N
    bias = INITIAL_BIAS
    delta = 0

    # each distinct value is visited once, smallest first
    for m in sorted(set(c for c in input if not basic(c))):
        delta = checked_add(delta, checked_mul(m - n, h + 1))
        n = m

        for c in input:
            if c < n:
                delta = checked_add(delta, 1)
            elif c == n:
                output.extend(encode_int(bias, delta))
                bias = adapt_bias(delta, h + 1, b == h)
                delta = 0
                h += 1

        delta = checked_add(delta, 1)
        n += 1

    return ''.join(chr(c) for c in output)

def decode_points(label):
    """Decode a Punycode label (str or bytes) to a list of int code points."""
    input = code_points(label)
    output = []

    d = -1
    for j, c in enumerate(input):
        if c == ord(DELIMITER):
            d = j

    if d > 0:
        for c in input[:d]:
            if not basic(c):
                raise InvalidInputError('Non-basic code point 0x%X before delimiter' % c)
        output = input[:d]

    # the delimiter is only consumed when something came before it
    pos = d + 1 if d > 0 else 0

    n = INITIAL_N
    bias = INITIAL_BIAS
    i = 0

    while pos < len(input):
        oldi = i
        i, pos = decode_int(input, pos, bias, i)

        size = checked_add(len(output), 1)
        bias = adapt_bias(i - oldi, size, oldi == 0)

        n = checked_add(n, i // size)
        i %= size

        output.insert(i, n)
        i += 1

    return output

def decode(label):
    """Decode a Punycode label (str or bytes) to a str."""
    points = decode_points(label)
    for c in points:
        if c > MAX_UNICODE or 0xD800 <= c <= 0xDFFF:
            raise InvalidInputError('Decoded code point 0x%X is not a character' % c)
    return ''.join(chr(c) for c in points)


def parse_code_points(values):
    """'fe,ffffffff' -> [0xFE, 0xFFFFFFFF]"""
    result = []
    for value in values:
        try:
            result.append([int(x, 16) for x in value.split(',') if x.strip()])
        except ValueError:
            raise click.BadParameter('expected comma-separated hex code points, got %r' % value)
    return result


@click.group()
@click.version_option(version=__version__)
@click.option('-v', '--verbose', is_flag=True, help='Log every conversion.')
def main(verbose):
    """Convert between Unicode text and Punycode labels (RFC 3492)."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )


@main.command(name='encode')
@click.option('codepoints', '-x', '--codepoints', is_flag=True,
              help='Arguments are comma-separated hex code points.')
@click.argument('values', nargs=-1, required=True)
def encode_command(codepoints, values):
    """Encode each TEXT argument as a Punycode label."""
    if codepoints:
        values = parse_code_points(values)

    for value in values:
        try:
            label = encode(value)
        except Error as e:
            raise click.ClickException(str(e))
        _LOGGER.debug('encoded %r -> %r', value, label)
        click.echo(label)


@main.command(name='decode')
@click.option('codepoints', '-x', '--codepoints', is_flag=True,
              help='Print comma-separated hex code points instead of text.')
@click.argument('labels', nargs=-1, required=True)
def decode_command(codepoints, labels):
    """Decode each Punycode LABEL argument."""
    for label in labels:
        try:
            if codepoints:
                text = ','.join('%x' % c for c in decode_points(label))
            else:
                text = decode(label)
        except Error as e:
            raise click.ClickException(str(e))
        _LOGGER.debug('decoded %r -> %r', label, text)
        click.echo(text)


if __name__ == '__main__':
    main()
