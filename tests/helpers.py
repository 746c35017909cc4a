"""Shared test helpers (plain functions, not fixtures)."""

from __future__ import annotations

import base64
import time
from datetime import date, datetime, timezone
from uuid import uuid4

import jwt
from cryptography.hazmat.primitives.asymmetric import rsa

from cabinly.domain.cabins import Cabin
from cabinly.domain.reservations import Reservation, ReservationStatus, Season

TEST_ISSUER = "https://auth.example.com"
TEST_AUDIENCE = "cabinly-api"


def d(value: str) -> date:
    return date.fromisoformat(value)


def make_reservation(
    cabin: Cabin = Cabin.SMALL,
    check_in: str = "2025-08-01",
    check_out: str = "2025-08-05",
    status: ReservationStatus = ReservationStatus.CONFIRMED,
    id: str | None = None,
    **extra,
) -> Reservation:
    return Reservation(
        id=id or str(uuid4()),
        cabin=cabin,
        check_in=d(check_in),
        check_out=d(check_out),
        status=status,
        **extra,
    )


def reservation_row(reservation: Reservation) -> tuple:
    """Row tuple in the repository's SELECT column order."""
    stamp = reservation.created_at or datetime(2025, 7, 1, 12, 0, tzinfo=timezone.utc)
    return (
        reservation.id,
        reservation.cabin.value,
        reservation.check_in,
        reservation.check_out,
        reservation.status.value,
        reservation.guest_name or "Guest",
        reservation.adults,
        reservation.children,
        reservation.babies,
        reservation.season.value if isinstance(reservation.season, Season) else reservation.season,
        reservation.total_price,
        reservation.notes,
        stamp,
        reservation.updated_at or stamp,
    )


def generate_rsa_keypair():
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return private_key, private_key.public_key()


def create_jwks(public_key, kid: str = "test-key-1") -> dict:
    public_numbers = public_key.public_numbers()

    def int_to_base64(n: int) -> str:
        byte_length = (n.bit_length() + 7) // 8
        return (
            base64.urlsafe_b64encode(n.to_bytes(byte_length, "big"))
            .rstrip(b"=")
            .decode()
        )

    return {
        "keys": [
            {
                "kty": "RSA",
                "use": "sig",
                "alg": "RS256",
                "kid": kid,
                "n": int_to_base64(public_numbers.n),
                "e": int_to_base64(public_numbers.e),
            }
        ]
    }


def create_token(
    private_key,
    kid: str = "test-key-1",
    sub: str = "user-123",
    iss: str = TEST_ISSUER,
    aud: str = TEST_AUDIENCE,
    exp: int | None = None,
    azp: str | None = None,
) -> str:
    now = int(time.time())
    payload = {
        "sub": sub,
        "iss": iss,
        "aud": aud,
        "exp": exp if exp is not None else now + 3600,
        "iat": now,
    }
    if azp:
        payload["azp"] = azp
    return jwt.encode(payload, private_key, algorithm="RS256", headers={"kid": kid})
