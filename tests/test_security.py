import time
from datetime import timedelta

import pytest
from jose import jwt

from errors import TokenError
from security import create_access_token, decode_access_token, hash_password, verify_password


def test_token_round_trip_carries_user_id():
    token = create_access_token('64b7f0c2a1b2c3d4e5f60718')
    assert decode_access_token(token) == '64b7f0c2a1b2c3d4e5f60718'


def test_token_expires_in_thirty_days():
    token = create_access_token('abc')
    claims = jwt.get_unverified_claims(token)
    remaining = timedelta(seconds=claims['exp'] - int(time.time()))
    assert timedelta(days=29, hours=23) < remaining <= timedelta(days=30)


def test_expired_token_rejected():
    token = create_access_token('abc', expires_delta=timedelta(seconds=-5))
    with pytest.raises(TokenError):
        decode_access_token(token)


def test_tampered_token_rejected():
    token = create_access_token('abc')
    forged = jwt.encode({'sub': 'someone-else'}, 'not-the-secret', algorithm='HS256')
    with pytest.raises(TokenError):
        decode_access_token(forged)
    with pytest.raises(TokenError):
        decode_access_token(token[:-2] + ('AA' if not token.endswith('AA') else 'BB'))


def test_token_without_subject_rejected():
    from config import JWT_ALGORITHM, JWT_SECRET

    token = jwt.encode({'foo': 'bar'}, JWT_SECRET, algorithm=JWT_ALGORITHM)
    with pytest.raises(TokenError):
        decode_access_token(token)


def test_garbage_token_rejected():
    with pytest.raises(TokenError):
        decode_access_token('not-a-jwt')


def test_password_hash_is_one_way():
    hashed = hash_password('s3cret!')
    assert hashed != 's3cret!'
    assert verify_password('s3cret!', hashed)
    assert not verify_password('wrong', hashed)


def test_verify_password_with_missing_or_plain_hash():
    assert not verify_password('anything', None)
    assert not verify_password('plaintext', 'plaintext')
