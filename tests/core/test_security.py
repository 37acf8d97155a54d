from datetime import timedelta

import pytest
from fastapi import HTTPException

from cueclub.core.exceptions import DependencyFailure, InvalidWinner, NotFound
from cueclub.core.security import create_access_token, verify_token


class TestTokens:

    def test_round_trip_returns_subject(self):
        token = create_access_token({"sub": "player-42"})
        assert verify_token(token) == "player-42"

    def test_expired_token_rejected(self):
        token = create_access_token({"sub": "player-42"}, expires_delta=timedelta(minutes=-1))
        with pytest.raises(HTTPException) as exc_info:
            verify_token(token)
        assert exc_info.value.status_code == 401

    def test_token_without_subject_rejected(self):
        with pytest.raises(HTTPException):
            verify_token(create_access_token({"role": "admin"}))

    def test_garbage_rejected(self):
        with pytest.raises(HTTPException):
            verify_token("not-a-jwt")


class TestErrorPayloads:

    def test_to_dict(self):
        error = NotFound("Match m-1 not found", step="load_match")
        assert error.to_dict() == {
            "detail": "Match m-1 not found",
            "error": "NotFound",
            "step": "load_match",
            "retryable": False,
        }
        assert error.status_code == 404

    def test_dependency_failure_is_retryable(self):
        error = DependencyFailure("database is locked", step="commit")
        assert error.retryable is True
        assert error.status_code == 503

    def test_invalid_winner_is_a_value_error(self):
        assert isinstance(InvalidWinner("nope"), ValueError)
