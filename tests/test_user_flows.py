"""
End-to-end user flows through the Flask test client:
- home page and locale selection
- sign in / sign out
- password reset and set password
"""

import re

import pytest


def outbox(application):
    return application.container.resolve('mail').outbox


class TestHome:

    def test_welcome(self, client):
        response = client.get('/')
        assert response.status_code == 200
        assert b'Welcome to Lantern' in response.data

    def test_locale_from_query_sticks_to_session(self, client):
        assert 'Willkommen bei Lantern' in client.get('/?locale=de').get_data(as_text=True)
        assert 'Willkommen bei Lantern' in client.get('/').get_data(as_text=True)

    def test_locale_from_accept_language(self, client):
        response = client.get('/', headers={'Accept-Language': 'de-DE,de;q=0.9'})
        assert 'Willkommen bei Lantern' in response.get_data(as_text=True)

    def test_unknown_locale_is_ignored(self, client):
        assert b'Welcome to Lantern' in client.get('/?locale=xx').data


class TestSignIn:

    def test_form(self, client):
        response = client.get('/user/sign-in')
        assert response.status_code == 200
        assert b'name="email"' in response.data
        assert b'name="password"' in response.data

    def test_empty_submission(self, client):
        response = client.post('/user/sign-in', data={'email': '', 'password': ''})
        body = response.get_data(as_text=True)

        assert response.status_code == 200
        assert 'Please enter your email address.' in body
        assert 'Please enter your password.' in body

    def test_wrong_password(self, client, user):
        response = client.post('/user/sign-in', data={'email': user.email, 'password': 'Wrong#123'})
        assert response.status_code == 401
        assert 'Email or password is incorrect.' in response.get_data(as_text=True)

    def test_sign_in_and_out(self, client, user):
        response = client.post('/user/sign-in', data={'email': user.email, 'password': 'Secret#123'})
        assert response.status_code == 302
        assert response.headers['Location'].endswith('/')

        with client.session_transaction() as session:
            assert session['user'] == {'id': user.id, 'email': user.email}
        assert user.email in client.get('/').get_data(as_text=True)

        # signed-in users are sent away from guest pages
        assert client.get('/user/sign-in').status_code == 302

        response = client.get('/user/sign-out')
        assert response.status_code == 302
        with client.session_transaction() as session:
            assert 'user' not in session

    def test_json_submission(self, client, user):
        response = client.post('/user/sign-in', json={'email': user.email, 'password': 'Secret#123'})
        assert response.status_code == 302

    def test_json_array_body_shows_form_errors(self, client):
        response = client.post('/user/sign-in', json=['ada@lantern.test'])
        body = response.get_data(as_text=True)

        assert response.status_code == 200
        assert 'Please enter your email address.' in body

    def test_json_numeric_password(self, client, user):
        response = client.post('/user/sign-in', json={'email': user.email, 'password': 12345678})
        assert response.status_code == 401
        assert 'Email or password is incorrect.' in response.get_data(as_text=True)

    def test_valid_email_with_empty_password(self, client, user):
        response = client.post('/user/sign-in', data={'email': user.email, 'password': ''})
        body = response.get_data(as_text=True)

        assert response.status_code == 200
        assert 'Please enter your password.' in body
        assert 'Please enter your email address.' not in body


class TestPasswordReset:

    def test_unknown_address_looks_like_success(self, client, application):
        response = client.post('/user/password-reset', data={'email': 'nobody@lantern.test'})

        assert response.status_code == 200
        assert 'an email with further instructions' in response.get_data(as_text=True)
        assert outbox(application) == []

    def test_invalid_address(self, client, application):
        response = client.post('/user/password-reset', data={'email': 'not-an-email'})
        assert 'Please enter a valid email address.' in response.get_data(as_text=True)
        assert outbox(application) == []

    def test_sends_set_password_link(self, client, application, user):
        response = client.post('/user/password-reset', data={'email': user.email})
        assert response.status_code == 200

        users = application.container.resolve('users')
        stored = users.find_by_email(user.email)
        assert stored.password_token
        assert stored.password_token_created_at is not None

        [message] = outbox(application)
        assert message['to'] == [user.email]
        assert message['subject'] == 'LANTERN | Set your password'
        assert f'http://localhost/user/set-password/{stored.password_token}' in message['html']

    def test_subject_follows_locale(self, client, application, user):
        client.post('/user/password-reset?locale=de', data={'email': user.email})
        assert outbox(application)[0]['subject'] == 'LANTERN | Passwort festlegen'

    def test_token_collision(self, client, application, user, monkeypatch):
        auth = application.container.resolve('auth')
        other = auth.create_user('grace@lantern.test', 'Secret#123')
        other.password_token = 'taken'
        application.container.resolve('users').save(other)
        monkeypatch.setattr(auth, 'generate_password_token', lambda: 'taken')

        response = client.post('/user/password-reset', data={'email': user.email})

        assert 'Your request could not be processed.' in response.get_data(as_text=True)
        assert outbox(application) == []
        assert any('password token already exists' in r.message for r in application.logger.history)


class TestSetPassword:

    @pytest.fixture
    def token(self, client, application, user):
        client.post('/user/password-reset', data={'email': user.email})
        html = outbox(application)[0]['html']
        return re.search(r'/user/set-password/([\w-]+)', html).group(1)

    def test_invalid_token(self, client):
        response = client.get('/user/set-password/nope')
        assert response.status_code == 400
        assert 'This link is invalid or has expired.' in response.get_data(as_text=True)

    def test_form(self, client, token):
        response = client.get(f'/user/set-password/{token}')
        assert response.status_code == 200
        assert b'name="password_confirmation"' in response.data

    def test_weak_password(self, client, token):
        response = client.post(f'/user/set-password/{token}',
                               data={'password': 'short', 'password_confirmation': 'short'})
        body = response.get_data(as_text=True)
        assert 'The password must contain at least one number.' in body
        assert 'The password must be at least 8 characters long.' in body

    def test_sets_password_and_clears_token(self, client, application, user, token):
        response = client.post(f'/user/set-password/{token}',
                               data={'password': 'N3w!password', 'password_confirmation': 'N3w!password'})
        assert response.status_code == 200
        assert 'Your password has been changed.' in response.get_data(as_text=True)

        auth = application.container.resolve('auth')
        assert auth.authenticate(user.email, 'N3w!password') is not None
        assert client.get(f'/user/set-password/{token}').status_code == 400
