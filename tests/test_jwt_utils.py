"""Tests for ID token claim extraction."""

from __future__ import annotations

from typing import Any, Callable

import pytest

from codex_login.jwt_utils import decode_jwt_payload, parse_id_token_claims
from codex_login.models import IdTokenClaims


class TestDecodeJwtPayload:
    def test_decodes_unpadded_payload(self, make_id_token: Callable[[dict[str, Any]], str]) -> None:
        token = make_id_token({"email": "a@b.com", "n": 1})
        assert decode_jwt_payload(token) == {"email": "a@b.com", "n": 1}

    @pytest.mark.parametrize(
        "token",
        [
            "",
            "only-one-part",
            "two.parts",
            "a.b.c.d",
            "header.!!!not-base64!!!.sig",
            "header.bm90IGpzb24.sig",  # "not json"
            "header.WzEsMiwzXQ.sig",  # "[1,2,3]"
        ],
    )
    def test_invalid_tokens_return_none(self, token: str) -> None:
        assert decode_jwt_payload(token) is None


class TestParseIdTokenClaims:
    def test_reads_email_plan_and_account(self, make_id_token: Callable[[dict[str, Any]], str]) -> None:
        token = make_id_token(
            {
                "email": "user@example.com",
                "https://api.openai.com/auth": {
                    "chatgpt_plan_type": "plus",
                    "chatgpt_account_id": "acct-123",
                },
            }
        )
        assert parse_id_token_claims(token) == IdTokenClaims(
            email="user@example.com", plan_type="plus", account_id="acct-123"
        )

    def test_email_only(self, make_id_token: Callable[[dict[str, Any]], str]) -> None:
        claims = parse_id_token_claims(make_id_token({"email": "a@b.com"}))
        assert claims.email == "a@b.com"
        assert claims.plan_type is None
        assert claims.account_id is None

    def test_no_claims(self, make_id_token: Callable[[dict[str, Any]], str]) -> None:
        assert parse_id_token_claims(make_id_token({"sub": "123"})) == IdTokenClaims()

    def test_garbage_degrades_to_absent(self) -> None:
        assert parse_id_token_claims("not-a-jwt") == IdTokenClaims()

    def test_wrong_types_are_ignored(self, make_id_token: Callable[[dict[str, Any]], str]) -> None:
        token = make_id_token(
            {
                "email": 42,
                "https://api.openai.com/auth": "not-an-object",
            }
        )
        assert parse_id_token_claims(token) == IdTokenClaims()
