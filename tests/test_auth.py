#!/usr/bin/env python3
"""
Tests for token issuance/validation and password hashing.

Run with:
    python -m pytest tests/test_auth.py
"""
import os
import sys
import unittest
from datetime import datetime, timedelta, timezone

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import jwt

from app.credentials import hash_password, verify_password
from app.errors import AuthConfigurationError, UnauthenticatedError
from app.models import Account
from app.services import TokenService
from gymrate import Config

SECRET = 'unit-test-secret-0123456789abcdef-0123456789abcdef-0123456789ab'


def _account(account_id=7):
    return Account(id=account_id, user_name='alice', password='hash')


def _future():
    return datetime.now(timezone.utc) + timedelta(minutes=5)


class TestTokenService(unittest.TestCase):

    def setUp(self):
        self.tokens = TokenService(SECRET, ttl_seconds=300)

    def test_round_trip_returns_account_id(self):
        token = self.tokens.issue_token(_account(7))
        self.assertEqual(self.tokens.validate_token(token), 7)

    def test_token_carries_expiry(self):
        token = self.tokens.issue_token(_account())
        claims = jwt.decode(token, SECRET, algorithms=['HS256'])
        self.assertIn('exp', claims)
        self.assertEqual(claims['accountID'], 7)

    def test_from_config(self):
        tokens = TokenService.from_config(
            Config(database_url='sqlite://', jwt_secret=SECRET, jwt_ttl_seconds=60))
        self.assertEqual(tokens.validate_token(tokens.issue_token(_account(3))), 3)

    def test_expired_token_rejected(self):
        expired = TokenService(SECRET, ttl_seconds=-60)
        token = expired.issue_token(_account())
        with self.assertRaises(UnauthenticatedError):
            self.tokens.validate_token(token)

    def test_wrong_secret_rejected(self):
        other = TokenService('another-secret-0123456789abcdef-0123456789abcdef-0123456789')
        token = other.issue_token(_account())
        with self.assertRaises(UnauthenticatedError):
            self.tokens.validate_token(token)

    def test_tampered_payload_rejected(self):
        token = self.tokens.issue_token(_account(7))
        header, _, signature = token.split('.')
        forged = jwt.encode({'accountID': 1, 'exp': _future()}, 'guess', algorithm='HS256')
        forged_payload = forged.split('.')[1]
        with self.assertRaises(UnauthenticatedError):
            self.tokens.validate_token(f'{header}.{forged_payload}.{signature}')

    def test_other_algorithm_rejected(self):
        token = jwt.encode({'accountID': 7, 'exp': _future()}, SECRET, algorithm='HS512')
        with self.assertRaises(UnauthenticatedError):
            self.tokens.validate_token(token)

    def test_malformed_token_rejected(self):
        for token in ('not-a-token', 'a.b.c', 'x' * 20):
            with self.assertRaises(UnauthenticatedError):
                self.tokens.validate_token(token)

    def test_missing_token_rejected(self):
        for token in ('', None):
            with self.assertRaises(UnauthenticatedError):
                self.tokens.validate_token(token)

    def test_missing_account_claim_rejected(self):
        token = jwt.encode({'exp': _future()}, SECRET, algorithm='HS256')
        with self.assertRaises(UnauthenticatedError):
            self.tokens.validate_token(token)

    def test_non_integer_account_claim_rejected(self):
        token = jwt.encode({'accountID': 'seven', 'exp': _future()}, SECRET, algorithm='HS256')
        with self.assertRaises(UnauthenticatedError):
            self.tokens.validate_token(token)

    def test_missing_expiry_rejected(self):
        token = jwt.encode({'accountID': 7}, SECRET, algorithm='HS256')
        with self.assertRaises(UnauthenticatedError):
            self.tokens.validate_token(token)

    def test_issue_without_secret_fails(self):
        with self.assertRaises(AuthConfigurationError):
            TokenService(None).issue_token(_account())

    def test_validate_without_secret_fails(self):
        with self.assertRaises(AuthConfigurationError):
            TokenService('').validate_token('a.b.c')


class TestCredentials(unittest.TestCase):

    def test_hash_is_not_plaintext(self):
        self.assertNotEqual(hash_password('hunter2'), 'hunter2')

    def test_hash_is_salted(self):
        self.assertNotEqual(hash_password('hunter2'), hash_password('hunter2'))

    def test_verify_exact_password_only(self):
        stored = hash_password('hunter2')
        self.assertTrue(verify_password('hunter2', stored))
        self.assertFalse(verify_password('hunter3', stored))
        self.assertFalse(verify_password('', stored))

    def test_verify_malformed_hash_returns_false(self):
        self.assertFalse(verify_password('hunter2', ''))
        self.assertFalse(verify_password('hunter2', 'plain-text'))


if __name__ == '__main__':
    unittest.main()
