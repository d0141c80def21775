"""
Unsigned arbitrary-precision arithmetic.

The codec never touches integers directly: every add, shift, mask and radix
conversion goes through a ``BigArithmetic`` backend. ``NativeArithmetic`` maps
the operations onto Python ints. ``DecimalArithmetic`` keeps values as decimal
digit strings and builds everything from single-digit steps, the way a host
without big integers has to.

Values are never negative. ``sub`` clamps at zero instead of going below it.
"""

from core.errors import ConfigurationError, InvalidCharacterError

BINARY_DIGITS = "01"
HEX_DIGITS = "0123456789abcdef"


class BigArithmetic:
    """Operations over non-negative integers of unbounded width.

    Subclasses provide the primitives (``from_int``, ``to_int``, ``add``,
    ``sub``, ``mul``, ``divmod``, ``compare``). Everything else is derived
    from them here and may be overridden where the backend has a faster path.
    """

    name = "abstract"

    # Primitives

    def from_int(self, n):
        raise NotImplementedError

    def to_int(self, a):
        raise NotImplementedError

    def add(self, a, b):
        raise NotImplementedError

    def sub(self, a, b):
        raise NotImplementedError

    def mul(self, a, b):
        raise NotImplementedError

    def divmod(self, a, b):
        raise NotImplementedError

    def compare(self, a, b):
        raise NotImplementedError

    # Derived

    def div(self, a, b):
        return self.divmod(a, b)[0]

    def mod(self, a, b):
        return self.divmod(a, b)[1]

    def is_zero(self, a):
        return self.compare(a, self.from_int(0)) == 0

    def pow(self, base, exp):
        """Square-and-multiply; ``exp`` is a plain non-negative int."""
        if exp < 0:
            raise ValueError("negative exponent")
        result = self.from_int(1)
        square = base
        while exp:
            if exp & 1:
                result = self.mul(result, square)
            exp >>= 1
            if exp:
                square = self.mul(square, square)
        return result

    def shift_left(self, a, n):
        return self.mul(a, self.pow(self.from_int(2), n))

    def shift_right(self, a, n):
        return self.div(a, self.pow(self.from_int(2), n))

    def mask(self, bits):
        """``2**bits - 1``: the low ``bits`` bits set."""
        return self.sub(self.pow(self.from_int(2), bits), self.from_int(1))

    def to_binary(self, a):
        """Minimal binary digit string, ``"0"`` for zero."""
        return self.to_radix(a, 2, BINARY_DIGITS)

    def from_binary(self, bits):
        return self.from_radix(bits, {"0": 0, "1": 1}, 2)

    def bit_and(self, a, b):
        return self._bitwise(a, b, lambda x, y: "1" if x == y == "1" else "0")

    def bit_xor(self, a, b):
        return self._bitwise(a, b, lambda x, y: "1" if x != y else "0")

    def bit_or(self, a, b):
        return self._bitwise(a, b, lambda x, y: "1" if "1" in (x, y) else "0")

    def _bitwise(self, a, b, combine):
        bits_a, bits_b = self.to_binary(a), self.to_binary(b)
        width = max(len(bits_a), len(bits_b))
        bits_a, bits_b = bits_a.rjust(width, "0"), bits_b.rjust(width, "0")
        return self.from_binary("".join(combine(x, y) for x, y in zip(bits_a, bits_b)))

    def to_radix(self, a, radix, alphabet, min_length=0):
        """Render ``a`` in base ``radix`` using ``alphabet`` as digits.

        The result is left-padded with ``alphabet[0]`` up to ``min_length``.
        """
        if self.is_zero(a):
            return alphabet[0] * max(min_length, 1)

        base = self.from_int(radix)
        chars = []
        while not self.is_zero(a):
            a, remainder = self.divmod(a, base)
            chars.append(alphabet[self.to_int(remainder)])

        return "".join(reversed(chars)).rjust(min_length, alphabet[0])

    def from_radix(self, text, char_index, radix):
        """Parse ``text`` left to right as digits of base ``radix``."""
        base = self.from_int(radix)
        value = self.from_int(0)
        for char in text:
            digit = char_index.get(char)
            if digit is None:
                raise InvalidCharacterError(
                    f"Invalid character in encoded string: {char!r}", character=char
                )
            value = self.add(self.mul(value, base), self.from_int(digit))
        return value

    def to_hex(self, a):
        return self.to_radix(a, 16, HEX_DIGITS)


class NativeArithmetic(BigArithmetic):
    """Python ints are already unbounded; each operation is a single expression."""

    name = "native"

    def from_int(self, n):
        if n < 0:
            raise ValueError(f"expected a non-negative integer, got {n}")
        return n

    def to_int(self, a):
        return a

    def add(self, a, b):
        return a + b

    def sub(self, a, b):
        return a - b if a > b else 0

    def mul(self, a, b):
        return a * b

    def divmod(self, a, b):
        return divmod(a, b)

    def compare(self, a, b):
        return (a > b) - (a < b)

    def pow(self, base, exp):
        if exp < 0:
            raise ValueError("negative exponent")
        return base ** exp

    def shift_left(self, a, n):
        return a << n

    def shift_right(self, a, n):
        return a >> n

    def mask(self, bits):
        return (1 << bits) - 1

    def to_binary(self, a):
        return format(a, "b")

    def from_binary(self, bits):
        return int(bits, 2)

    def bit_and(self, a, b):
        return a & b

    def bit_xor(self, a, b):
        return a ^ b

    def bit_or(self, a, b):
        return a | b


class DecimalArithmetic(BigArithmetic):
    """Decimal digit-string arithmetic.

    Values are normalised strings of ``0-9`` without leading zeros. Each
    primitive walks the digits and only ever combines single digits, carries
    and borrows, so no intermediate ever exceeds a few decimal places.
    """

    name = "decimal"

    # Divisors up to this many digits take the short-division path.
    SHORT_DIVISOR_DIGITS = 4

    def from_int(self, n):
        if n < 0:
            raise ValueError(f"expected a non-negative integer, got {n}")
        return str(n)

    def to_int(self, a):
        return int(a)

    @staticmethod
    def _normalize(digits):
        return digits.lstrip("0") or "0"

    def compare(self, a, b):
        if len(a) != len(b):
            return 1 if len(a) > len(b) else -1
        return (a > b) - (a < b)

    def add(self, a, b):
        result = []
        carry = 0
        i, j = len(a) - 1, len(b) - 1
        while i >= 0 or j >= 0 or carry:
            total = carry
            if i >= 0:
                total += ord(a[i]) - 48
            if j >= 0:
                total += ord(b[j]) - 48
            result.append(chr(48 + total % 10))
            carry = total // 10
            i -= 1
            j -= 1
        return self._normalize("".join(reversed(result)))

    def sub(self, a, b):
        if self.compare(a, b) <= 0:
            return "0"
        result = []
        borrow = 0
        j = len(b) - 1
        for i in range(len(a) - 1, -1, -1):
            digit = ord(a[i]) - 48 - borrow
            if j >= 0:
                digit -= ord(b[j]) - 48
                j -= 1
            if digit < 0:
                digit += 10
                borrow = 1
            else:
                borrow = 0
            result.append(chr(48 + digit))
        return self._normalize("".join(reversed(result)))

    def mul(self, a, b):
        if a == "0" or b == "0":
            return "0"
        product = [0] * (len(a) + len(b))
        for i in range(len(a) - 1, -1, -1):
            digit_a = ord(a[i]) - 48
            for j in range(len(b) - 1, -1, -1):
                low = i + j + 1
                total = digit_a * (ord(b[j]) - 48) + product[low]
                product[low] = total % 10
                product[i + j] += total // 10
        return self._normalize("".join(chr(48 + d) for d in product))

    def divmod(self, a, b):
        if b == "0":
            raise ZeroDivisionError("integer division or modulo by zero")
        if self.compare(a, b) < 0:
            return "0", a
        if len(b) <= self.SHORT_DIVISOR_DIGITS:
            return self._short_divmod(a, int(b))
        return self._long_divmod(a, b)

    def _short_divmod(self, a, divisor):
        quotient = []
        remainder = 0
        for char in a:
            remainder = remainder * 10 + ord(char) - 48
            quotient.append(chr(48 + remainder // divisor))
            remainder %= divisor
        return self._normalize("".join(quotient)), str(remainder)

    def _long_divmod(self, a, b):
        quotient = []
        remainder = "0"
        for char in a:
            remainder = self._normalize(remainder + char)
            count = 0
            while self.compare(remainder, b) >= 0:
                remainder = self.sub(remainder, b)
                count += 1
            quotient.append(chr(48 + count))
        return self._normalize("".join(quotient)), remainder

    def to_binary(self, a):
        if a == "0":
            return "0"
        bits = []
        while a != "0":
            a, bit = self._short_divmod(a, 2)
            bits.append(bit)
        return "".join(reversed(bits))


_BACKENDS = {
    NativeArithmetic.name: NativeArithmetic,
    DecimalArithmetic.name: DecimalArithmetic,
}


def get_arithmetic(backend="native"):
    """Resolve a backend name (or pass an instance through)."""
    if isinstance(backend, BigArithmetic):
        return backend
    try:
        return _BACKENDS[backend]()
    except (KeyError, TypeError):
        raise ConfigurationError(
            f"Unknown arithmetic backend {backend!r}; expected one of {sorted(_BACKENDS)}",
            option="arithmetic",
        ) from None
