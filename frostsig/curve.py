"""Arithmetic on the secp256k1 group: scalars modulo the group order and points."""

from __future__ import annotations

import functools
import secrets

P = 2**256 - 2**32 - 977
N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
_GX = 0x79BE667EF9DCBBAC55A06295CE870B07029BFCDB2DCE28D959F2815B16F81798
_GY = 0x483ADA7726A3C4655DA4FBFC0E1108A8FD17B448A68554199C47D08FFB10D4B8

SCALAR_LENGTH = 32
POINT_LENGTH = 33

_INF = (0, 1, 0)


def _jac_double(p):
    x, y, z = p
    if z == 0 or y == 0:
        return _INF
    yy = y * y % P
    s = 4 * x * yy % P
    m = 3 * x * x % P
    x3 = (m * m - 2 * s) % P
    y3 = (m * (s - x3) - 8 * yy * yy) % P
    z3 = 2 * y * z % P
    return (x3, y3, z3)


def _jac_add(p, q):
    x1, y1, z1 = p
    x2, y2, z2 = q
    if z1 == 0:
        return q
    if z2 == 0:
        return p
    z1z1 = z1 * z1 % P
    z2z2 = z2 * z2 % P
    u1 = x1 * z2z2 % P
    u2 = x2 * z1z1 % P
    s1 = y1 * z2 * z2z2 % P
    s2 = y2 * z1 * z1z1 % P
    if u1 == u2:
        if s1 != s2:
            return _INF
        return _jac_double(p)
    h = (u2 - u1) % P
    r = (s2 - s1) % P
    hh = h * h % P
    hhh = h * hh % P
    u1hh = u1 * hh % P
    x3 = (r * r - hhh - 2 * u1hh) % P
    y3 = (r * (u1hh - x3) - s1 * hhh) % P
    z3 = h * z1 * z2 % P
    return (x3, y3, z3)


def _to_affine(p):
    x, y, z = p
    if z == 0:
        return None
    z_inv = pow(z, -1, P)
    z_inv2 = z_inv * z_inv % P
    return (x * z_inv2 % P, y * z_inv2 * z_inv % P)


def _jac_mul(p, k):
    result = _INF
    for bit in bin(k)[2:]:
        result = _jac_double(result)
        if bit == "1":
            result = _jac_add(result, p)
    return result


@functools.lru_cache(maxsize=1)
def _base_table():
    table = []
    current = (_GX, _GY, 1)
    for _ in range(256):
        table.append(current)
        current = _jac_double(current)
    return tuple(table)


def _sqrt_mod_p(value):
    root = pow(value, (P + 1) // 4, P)
    if root * root % P != value % P:
        raise ValueError("value has no square root modulo p")
    return root


class Point:
    """A point on secp256k1, or the identity when built without coordinates."""

    __slots__ = ("_coords",)
    domain = "Point"

    def __init__(self, x=None, y=None):
        if x is None and y is None:
            self._coords = None
            return
        if x is None or y is None:
            raise ValueError("a point needs both coordinates")
        if not (0 <= x < P and 0 <= y < P):
            raise ValueError("coordinate out of range")
        if (y * y - x * x * x - 7) % P != 0:
            raise ValueError("point is not on the curve")
        self._coords = (x, y)

    @classmethod
    def _from_jacobian(cls, p):
        point = cls.__new__(cls)
        point._coords = _to_affine(p)
        return point

    def _jacobian(self):
        if self._coords is None:
            return _INF
        return (self._coords[0], self._coords[1], 1)

    @property
    def x(self):
        return None if self._coords is None else self._coords[0]

    @property
    def y(self):
        return None if self._coords is None else self._coords[1]

    def is_identity(self):
        return self._coords is None

    def _require_coords(self):
        if self._coords is None:
            raise ValueError("the identity point has no coordinates")
        return self._coords

    def has_even_y(self):
        return self._require_coords()[1] % 2 == 0

    def x_bytes(self):
        return self._require_coords()[0].to_bytes(32, "big")

    def x_scalar(self):
        return Scalar(self._require_coords()[0])

    def to_bytes(self):
        """Compressed encoding; the identity is 33 zero bytes."""
        if self._coords is None:
            return bytes(POINT_LENGTH)
        x, y = self._coords
        return bytes([2 + (y & 1)]) + x.to_bytes(32, "big")

    def __bytes__(self):
        return self.to_bytes()

    @classmethod
    def from_bytes(cls, data):
        data = bytes(data)
        if len(data) != POINT_LENGTH:
            raise ValueError(f"expected {POINT_LENGTH} bytes for a point, found {len(data)}")
        if data == bytes(POINT_LENGTH):
            return cls()
        prefix = data[0]
        if prefix not in (2, 3):
            raise ValueError("invalid point prefix")
        point = cls.lift_x(data[1:])
        if (prefix == 3) == point.has_even_y():
            return -point
        return point

    @classmethod
    def lift_x(cls, data):
        """The point with the given 32-byte x coordinate and an even y coordinate."""
        data = bytes(data)
        if len(data) != 32:
            raise ValueError(f"expected 32 bytes for an x coordinate, found {len(data)}")
        x = int.from_bytes(data, "big")
        if x >= P:
            raise ValueError("x coordinate out of range")
        y = _sqrt_mod_p((x * x * x + 7) % P)
        if y % 2:
            y = P - y
        return cls(x, y)

    def __add__(self, other):
        if not isinstance(other, Point):
            return NotImplemented
        return Point._from_jacobian(_jac_add(self._jacobian(), other._jacobian()))

    def __neg__(self):
        if self._coords is None:
            return self
        x, y = self._coords
        return Point(x, (P - y) % P)

    def __sub__(self, other):
        if not isinstance(other, Point):
            return NotImplemented
        return self + (-other)

    def __eq__(self, other):
        if not isinstance(other, Point):
            return NotImplemented
        return self._coords == other._coords

    def __hash__(self):
        return hash(("Point", self._coords))

    def __repr__(self):
        if self._coords is None:
            return "Point(identity)"
        return f"Point(x={self._coords[0]:#066x}, y={self._coords[1]:#066x})"


class Scalar:
    """An integer modulo the order of secp256k1."""

    __slots__ = ("_value",)
    domain = "Scalar"

    def __init__(self, value=0):
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError("a scalar is built from an int")
        self._value = value % N

    @property
    def value(self):
        return self._value

    def __int__(self):
        return self._value

    def is_zero(self):
        return self._value == 0

    def __bool__(self):
        return self._value != 0

    def act_on_base(self):
        table = _base_table()
        result = _INF
        k = self._value
        index = 0
        while k:
            if k & 1:
                result = _jac_add(result, table[index])
            k >>= 1
            index += 1
        return Point._from_jacobian(result)

    def act(self, point):
        if not isinstance(point, Point):
            raise TypeError("a scalar acts on a point")
        if point.is_identity() or self._value == 0:
            return Point()
        return Point._from_jacobian(_jac_mul(point._jacobian(), self._value))

    def invert(self):
        if self._value == 0:
            raise ZeroDivisionError("zero has no inverse")
        return Scalar(pow(self._value, -1, N))

    def to_bytes(self):
        return self._value.to_bytes(SCALAR_LENGTH, "big")

    def __bytes__(self):
        return self.to_bytes()

    @classmethod
    def from_bytes(cls, data):
        """Interpret big-endian bytes as an integer, reduced modulo the group order."""
        return cls(int.from_bytes(bytes(data), "big"))

    def __add__(self, other):
        if not isinstance(other, Scalar):
            return NotImplemented
        return Scalar(self._value + other._value)

    def __sub__(self, other):
        if not isinstance(other, Scalar):
            return NotImplemented
        return Scalar(self._value - other._value)

    def __mul__(self, other):
        if isinstance(other, Scalar):
            return Scalar(self._value * other._value)
        if isinstance(other, Point):
            return self.act(other)
        return NotImplemented

    def __neg__(self):
        return Scalar(-self._value)

    def __eq__(self, other):
        if not isinstance(other, Scalar):
            return NotImplemented
        return self._value == other._value

    def __hash__(self):
        return hash(("Scalar", self._value))

    def __repr__(self):
        return "Scalar(...)"


def generator():
    return Point(_GX, _GY)


def identity():
    return Point()


def random_scalar():
    return Scalar(secrets.randbelow(N))


def random_unit_scalar():
    return Scalar(1 + secrets.randbelow(N - 1))