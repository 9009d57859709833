#!/usr/bin/env python3
"""
Tests for domain entities, request decoding and the error taxonomy.

Run with:
    python -m pytest tests/test_models.py
"""
import os
import sys
import unittest
from datetime import datetime, timezone

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import errors
from app.errors import DecodeError
from app.models import (
    Account, CreateAccountRequest, CreateGymRequest, CreateRatingRequest, Gym,
    LoginRequest, Rating, UpdateGymRequest,
)


class TestEntities(unittest.TestCase):

    def test_new_gym_defaults(self):
        gym = Gym(name='Iron Temple')
        self.assertEqual(gym.id, 0)
        self.assertEqual(gym.rating, 0)
        self.assertEqual(gym.created_at.tzinfo, timezone.utc)

    def test_gym_to_dict_keys(self):
        data = Gym(name='A', description='B', id=3, rating=4.5).to_dict()
        self.assertEqual(
            list(data), ['id', 'name', 'description', 'rating', 'createdAt', 'updatedAt'])
        self.assertEqual(data['rating'], 4.5)

    def test_naive_timestamps_serialised_as_utc(self):
        gym = Gym(name='A', created_at=datetime(2024, 1, 2, 3, 4, 5))
        self.assertEqual(gym.to_dict()['createdAt'], '2024-01-02T03:04:05+00:00')

    def test_rating_to_dict(self):
        data = Rating(gym_id=1, rating=5, user_name='alice', review='Great').to_dict()
        self.assertEqual(data['gymId'], 1)
        self.assertEqual(data['userName'], 'alice')

    def test_account_never_serialises_password(self):
        account = Account(user_name='alice', password='secret')
        self.assertNotIn('password', account.to_dict())
        self.assertNotIn('secret', repr(account))


class TestRequests(unittest.TestCase):

    def test_create_gym(self):
        req = CreateGymRequest.from_json({'name': 'A', 'description': 'B'})
        gym = req.to_gym()
        self.assertEqual((gym.name, gym.description), ('A', 'B'))

    def test_create_gym_description_optional(self):
        self.assertEqual(CreateGymRequest.from_json({'name': 'A'}).description, '')

    def test_create_gym_rejects_bad_input(self):
        for body in (None, [], 'x', {}, {'name': ''}, {'name': '   '}, {'name': 5},
                     {'name': 'A', 'description': 7}):
            with self.assertRaises(DecodeError):
                CreateGymRequest.from_json(body)

    def test_names_limited_to_column_width(self):
        self.assertEqual(len(CreateGymRequest.from_json({'name': 'x' * 100}).name), 100)
        with self.assertRaises(DecodeError):
            CreateGymRequest.from_json({'name': 'x' * 101})
        with self.assertRaises(DecodeError):
            UpdateGymRequest.from_json({'name': 'x' * 101})
        with self.assertRaises(DecodeError):
            CreateAccountRequest.from_json({'userName': 'u' * 101, 'password': 'p'})

    def test_update_gym_partial(self):
        req = UpdateGymRequest.from_json({'description': 'only this'})
        self.assertIsNone(req.name)
        self.assertEqual(req.description, 'only this')

    def test_update_gym_needs_a_field(self):
        with self.assertRaises(DecodeError):
            UpdateGymRequest.from_json({})

    def test_create_rating(self):
        req = CreateRatingRequest.from_json({'rating': 4, 'review': 'ok'})
        self.assertEqual((req.rating, req.review), (4, 'ok'))

    def test_create_rating_range_left_to_storage(self):
        self.assertEqual(CreateRatingRequest.from_json({'rating': 9}).rating, 9)

    def test_create_rating_rejects_non_integers(self):
        for body in ({}, {'rating': None}, {'rating': '3'}, {'rating': 3.0}, {'rating': False}):
            with self.assertRaises(DecodeError):
                CreateRatingRequest.from_json(body)

    def test_create_account_accepts_both_spellings(self):
        self.assertEqual(
            CreateAccountRequest.from_json({'userName': 'a', 'password': 'p'}).user_name, 'a')
        self.assertEqual(
            CreateAccountRequest.from_json({'username': 'b', 'password': 'p'}).user_name, 'b')

    def test_create_account_requires_password(self):
        with self.assertRaises(DecodeError):
            CreateAccountRequest.from_json({'userName': 'a'})

    def test_login_request(self):
        req = LoginRequest.from_json({'username': 'a', 'password': 'p'})
        self.assertEqual(req.username, 'a')
        with self.assertRaises(DecodeError):
            LoginRequest.from_json({'username': 'a'})


class TestErrors(unittest.TestCase):

    def test_status_codes(self):
        expected = {
            errors.DecodeError: 400,
            errors.NotFoundError: 404,
            errors.ConstraintViolationError: 400,
            errors.DuplicateError: 409,
            errors.StoreUnavailableError: 500,
            errors.UnauthenticatedError: 401,
            errors.ForbiddenError: 403,
            errors.AuthConfigurationError: 500,
        }
        for cls, status in expected.items():
            self.assertEqual(cls('x').status_code, status, cls.__name__)

    def test_storage_errors_share_base(self):
        for cls in (errors.NotFoundError, errors.ConstraintViolationError,
                    errors.StoreUnavailableError):
            self.assertTrue(issubclass(cls, errors.StorageError))

    def test_default_message_from_docstring(self):
        self.assertEqual(errors.NotFoundError().message, 'Entity not found.')


if __name__ == '__main__':
    unittest.main()
