"""Polynomials over the scalars and their commitments in the group."""

from __future__ import annotations

import functools
import operator
from dataclasses import dataclass
from typing import ClassVar, Tuple

from frostsig.curve import Point, Scalar, identity, random_scalar


def party_scalar(party_id):
    """The scalar a party ID stands for: its UTF-8 bytes read as a big-endian integer."""
    if not isinstance(party_id, str):
        raise TypeError("a party ID is a string")
    value = Scalar.from_bytes(party_id.encode("utf-8"))
    if value.is_zero():
        raise ValueError(f"party ID {party_id!r} maps to the zero scalar")
    return value


@dataclass(frozen=True)
class Polynomial:
    """f(x) = a₀ + a₁x + … + aₜxᵗ with scalar coefficients, constant first."""

    coefficients: Tuple[Scalar, ...]

    def __post_init__(self):
        coefficients = tuple(self.coefficients)
        if not coefficients:
            raise ValueError("a polynomial needs at least one coefficient")
        if not all(isinstance(c, Scalar) for c in coefficients):
            raise TypeError("polynomial coefficients must be scalars")
        object.__setattr__(self, "coefficients", coefficients)

    @classmethod
    def random(cls, degree, constant=None):
        """A polynomial of the given degree with random coefficients and a chosen constant."""
        if degree < 0:
            raise ValueError("the degree of a polynomial cannot be negative")
        if constant is None:
            constant = random_scalar()
        return cls((constant, *(random_scalar() for _ in range(degree))))

    @property
    def degree(self):
        return len(self.coefficients) - 1

    @property
    def constant(self):
        return self.coefficients[0]

    def evaluate(self, x):
        """f(x), by Horner's rule."""
        if x.is_zero():
            return self.coefficients[0]
        result = Scalar(0)
        for coefficient in reversed(self.coefficients):
            result = result * x + coefficient
        return result

    def __repr__(self):
        return f"Polynomial(degree={self.degree})"


@dataclass(frozen=True)
class Exponent:
    """The commitment aᵢ·G to each coefficient of a polynomial."""

    coefficients: Tuple[Point, ...]
    domain: ClassVar[str] = "Exponent"

    def __post_init__(self):
        coefficients = tuple(self.coefficients)
        if not coefficients:
            raise ValueError("an exponent needs at least one coefficient")
        if not all(isinstance(c, Point) for c in coefficients):
            raise TypeError("exponent coefficients must be points")
        object.__setattr__(self, "coefficients", coefficients)

    @classmethod
    def from_polynomial(cls, polynomial):
        return cls(tuple(c.act_on_base() for c in polynomial.coefficients))

    @property
    def degree(self):
        return len(self.coefficients) - 1

    def constant(self):
        return self.coefficients[0]

    def evaluate(self, x):
        """∑ₖ xᵏ·ϕₖ, which equals f(x)·G for the committed polynomial f."""
        result = identity()
        for coefficient in reversed(self.coefficients):
            result = x.act(result) + coefficient
        return result

    def __bytes__(self):
        return len(self.coefficients).to_bytes(4, "big") + b"".join(
            c.to_bytes() for c in self.coefficients
        )


def sum_exponents(exponents):
    """The coefficient-wise sum of exponents of equal degree."""
    exponents = list(exponents)
    if not exponents:
        raise ValueError("cannot sum an empty list of exponents")
    degree = exponents[0].degree
    if any(e.degree != degree for e in exponents):
        raise ValueError("exponents have different degrees")
    columns = zip(*(e.coefficients for e in exponents))
    return Exponent(tuple(functools.reduce(operator.add, column) for column in columns))


def lagrange(party_ids):
    """The Lagrange coefficients at zero for the given set of parties."""
    ids = list(party_ids)
    if len(set(ids)) != len(ids):
        raise ValueError("party IDs contain duplicates")
    points = {party_id: party_scalar(party_id) for party_id in ids}
    if len(set(points.values())) != len(points):
        raise ValueError("two party IDs map to the same scalar")
    coefficients = {}
    for party_id, x_i in points.items():
        numerator = Scalar(1)
        denominator = Scalar(1)
        for other, x_j in points.items():
            if other == party_id:
                continue
            numerator = numerator * x_j
            denominator = denominator * (x_j - x_i)
        coefficients[party_id] = numerator * denominator.invert()
    return coefficients