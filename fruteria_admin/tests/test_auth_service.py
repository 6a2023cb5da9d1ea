# -*- coding: utf-8 -*-
"""
Tests de la verificación de credenciales.
"""
from werkzeug.security import generate_password_hash

from fruteria_admin.services import AuthService

USERS = [
    {'id': '1', 'username': 'olga', 'password': 'fruta123', 'active': True},
    {'id': '2', 'username': 'pedro', 'password': generate_password_hash('secreto'), 'active': True},
    {'id': '3', 'username': 'baja', 'password': 'x', 'active': False},
]


def test_plaintext_password():
    auth = AuthService()
    assert auth.authenticate(USERS, 'olga', 'fruta123')['id'] == '1'
    assert auth.authenticate(USERS, 'olga', 'fruta12') is None


def test_hashed_password_is_verified_with_werkzeug():
    auth = AuthService()
    assert auth.is_hashed(USERS[1]['password'])
    assert auth.authenticate(USERS, 'pedro', 'secreto')['id'] == '2'
    # El hash en sí no sirve como contraseña
    assert auth.authenticate(USERS, 'pedro', USERS[1]['password']) is None


def test_inactive_and_unknown_users_are_rejected():
    auth = AuthService()
    assert auth.authenticate(USERS, 'baja', 'x') is None
    assert auth.authenticate(USERS, 'nadie', 'x') is None
    assert auth.authenticate(None, 'olga', 'fruta123') is None


def test_prepare_password_only_hashes_when_enabled():
    assert AuthService().prepare_password('abc') == 'abc'

    hashing = AuthService(hash_passwords=True)
    stored = hashing.prepare_password('abc')
    assert stored != 'abc'
    assert hashing.verify_password(stored, 'abc')
    # Un hash existente no se vuelve a hashear
    assert hashing.prepare_password(stored) == stored


def test_hashed_users_can_login_through_store(make_store):
    store = make_store()
    store.auth_service.hash_passwords = True
    store.add_system_user({'id': 'u2', 'username': 'caja', 'password': 'abcd'})
    assert store.state.users[-1]['password'] != 'abcd'
    assert store.login('caja', 'abcd')['success'] is True
