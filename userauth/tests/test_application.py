"""Tests for the userauth HTTP API, through the app factory."""

from unittest import TestCase, mock

from ..exceptions import Unavailable
from ..factory import create_app


class ApplicationTestCase(TestCase):
    """Run the application against in-memory stores."""

    def setUp(self):
        """Create an app with SQLite and FakeRedis."""
        self.app = create_app({
            'SQLALCHEMY_DATABASE_URI': 'sqlite://',
            'REDIS_FAKE': True,
            'CREATE_DB': True,
            'PASSWORD_HASH_COST': '4',
            'SMTP_HOST': None
        })
        self.authenticator = self.app.extensions['userauth']
        self.client = self.app.test_client()

    def tearDown(self):
        """Release the stores."""
        self.authenticator.users.drop_all()
        self.authenticator.close()

    def register(self, username='alice', email='alice@example.com',
                 password='Secr3t!'):
        """Register a user through the API."""
        return self.client.post('/users', json={'username': username,
                                                'email': email,
                                                'password': password})

    def login(self, username='alice', password='Secr3t!'):
        """Log in through the API."""
        return self.client.post('/login', json={'username': username,
                                                'password': password})

    @staticmethod
    def bearer(token):
        """Authorization header for a session token."""
        return {'Authorization': f'Bearer {token}'}


class TestRegistration(ApplicationTestCase):
    """POST /users and POST /users/<user_id>/verify-email."""

    def test_register(self):
        """A new user is created and can be found at its location."""
        response = self.register()
        self.assertEqual(response.status_code, 201)
        data = response.get_json()
        user_id = data['user']['user_id']
        self.assertEqual(data['user']['username'], 'alice')
        self.assertIsNone(data['user']['email_verified_at'])
        self.assertNotIn('password_hash', data['user'])
        self.assertTrue(
            response.headers['Location'].endswith(f'/users/{user_id}')
        )

        response = self.client.get(f'/users/{user_id}')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['user']['email'],
                         'alice@example.com')
        self.assertNotIn('password_hash', response.get_json()['user'])

    def test_username_taken(self):
        """Registering the same username twice is a conflict."""
        self.register()
        response = self.register(email='other@example.com')
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()['code'], 'username-taken')

    def test_email_taken(self):
        """Registering the same e-mail address twice is a conflict."""
        self.register()
        response = self.register(username='bob')
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()['code'], 'email-taken')

    def test_bad_input(self):
        """Each policy failure has its own code."""
        cases = [
            ({'username': ''}, 'username-empty'),
            ({'email': ''}, 'email-empty'),
            ({'password': 'abc'}, 'password-too-short'),
            ({'password': 'a' * 256}, 'password-too-long'),
        ]
        for override, code in cases:
            response = self.register(**override)
            self.assertEqual(response.status_code, 400, code)
            self.assertEqual(response.get_json()['code'], code)

    def test_missing_fields(self):
        """Fields left out entirely are treated as empty."""
        response = self.client.post('/users', json={})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['code'], 'username-empty')

    def test_too_long_username(self):
        """Usernames longer than the column are rejected by the form."""
        response = self.register(username='a' * 256)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['code'], 'invalid-request')
        self.assertIn('username', response.get_json()['errors'])

    def test_not_json(self):
        """The body must be a JSON object."""
        response = self.client.post('/users', data='username=alice',
                                    content_type='text/plain')
        self.assertEqual(response.status_code, 400)
        self.assertIn('reason', response.get_json())

        response = self.client.post('/users', json=['alice'])
        self.assertEqual(response.status_code, 400)

    def test_verify_email(self):
        """The code from the e-mail verifies the address, once."""
        user_id = self.register().get_json()['user']['user_id']
        code = self.authenticator.verifications.r.get(
            f'verification:{user_id}'
        )

        path = f'/users/{user_id}/verify-email'
        response = self.client.post(path, json={'verification_code': code})
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.get_json()['verified'])

        response = self.client.post(path, json={'verification_code': code})
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.get_json()['verified'])

        user = self.client.get(f'/users/{user_id}').get_json()['user']
        self.assertIsNotNone(user['email_verified_at'])

    def test_verify_unknown_user(self):
        """There is nothing to verify for an unknown user."""
        response = self.client.post('/users/nope/verify-email',
                                    json={'verification_code': 'ABCDEF'})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()['code'], 'user-not-found')


class TestSessions(ApplicationTestCase):
    """POST /login, /refresh, /logout and GET /session."""

    def setUp(self):
        """Register a user."""
        super(TestSessions, self).setUp()
        self.user_id = self.register().get_json()['user']['user_id']

    def test_login(self):
        """A login yields a token that identifies the user."""
        response = self.login()
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data['user_id'], self.user_id)
        self.assertIn('expires_at', data)

        response = self.client.get('/session',
                                   headers=self.bearer(data['session_token']))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['user']['username'], 'alice')

    def test_invalid_login(self):
        """Wrong password and unknown user look the same."""
        wrong = self.login(password='wrong!')
        unknown = self.login(username='nobody')
        for response in (wrong, unknown):
            self.assertEqual(response.status_code, 401)
            self.assertEqual(response.get_json(), {
                'error': 'Invalid username or password.',
                'code': 'invalid-login'
            })

    def test_refresh(self):
        """The old token stops working once it has been refreshed."""
        old = self.login().get_json()['session_token']
        response = self.client.post('/refresh', headers=self.bearer(old))
        self.assertEqual(response.status_code, 200)
        new = response.get_json()['session_token']
        self.assertNotEqual(old, new)

        response = self.client.post('/refresh', headers=self.bearer(old))
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.get_json()['code'],
                         'invalid-session-token')
        self.assertIn('WWW-Authenticate', response.headers)

        response = self.client.get('/session', headers=self.bearer(new))
        self.assertEqual(response.status_code, 200)

    def test_token_in_body(self):
        """Without a header, the token may be sent in the body."""
        token = self.login().get_json()['session_token']
        response = self.client.post('/refresh',
                                    json={'session_token': token})
        self.assertEqual(response.status_code, 200)

    def test_logout(self):
        """Logging out twice is fine; the token is dead after the first."""
        token = self.login().get_json()['session_token']
        response = self.client.post('/logout', headers=self.bearer(token))
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.get_json()['logged_out'])

        response = self.client.post('/logout', json={'session_token': token})
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.get_json()['logged_out'])

        response = self.client.get('/session', headers=self.bearer(token))
        self.assertEqual(response.status_code, 401)

    def test_no_token(self):
        """A request without a token has no session."""
        response = self.client.get('/session')
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.get_json()['code'],
                         'invalid-session-token')

    def test_malformed_header(self):
        """The Authorization header must be a bearer token."""
        response = self.client.get('/session',
                                   headers={'Authorization': 'Bearer'})
        self.assertEqual(response.status_code, 400)
        response = self.client.get('/session',
                                   headers={'Authorization': 'Basic abc'})
        self.assertEqual(response.status_code, 400)


class TestUsers(ApplicationTestCase):
    """GET /users/<user_id> and /users/by-username/<username>."""

    def test_by_username(self):
        """Users can be found by username."""
        user_id = self.register().get_json()['user']['user_id']
        response = self.client.get('/users/by-username/alice')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['user']['user_id'], user_id)

    def test_not_found(self):
        """Unknown users are a 404."""
        for path in ('/users/nope', '/users/by-username/nope'):
            response = self.client.get(path)
            self.assertEqual(response.status_code, 404)
            self.assertEqual(response.get_json()['code'], 'user-not-found')


class TestService(ApplicationTestCase):
    """Health, headers and failures."""

    def test_status(self):
        """Both stores are reachable."""
        response = self.client.get('/status')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json(),
                         {'users': True, 'sessions': True})

    def test_status_unavailable(self):
        """The health check fails if a store is down."""
        with mock.patch.object(self.authenticator.sessions, 'is_available',
                               return_value=False):
            response = self.client.get('/status')
        self.assertEqual(response.status_code, 503)

    def test_security_headers(self):
        """Responses may not be framed."""
        response = self.client.get('/status')
        self.assertEqual(response.headers['X-Frame-Options'], 'DENY')
        self.assertIn("frame-ancestors 'none'",
                      response.headers['Content-Security-Policy'])

    def test_unavailable(self):
        """A store outage is a 503 that may be retried."""
        with mock.patch.object(self.authenticator, 'login',
                               side_effect=Unavailable('down')):
            response = self.login()
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.get_json()['code'], 'unavailable')
        self.assertNotIn('down', response.get_data(as_text=True))

    def test_unknown_error(self):
        """Anything unexpected is a 500 with no detail."""
        with mock.patch.object(self.authenticator, 'get_user',
                               side_effect=RuntimeError('secret detail')):
            response = self.client.get('/users/foo')
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.get_json(), {
            'error': 'An unknown error occurred.',
            'code': 'unknown-error'
        })

    def test_not_found_route(self):
        """Unknown routes are rendered as JSON."""
        response = self.client.get('/nowhere')
        self.assertEqual(response.status_code, 404)
        self.assertIn('reason', response.get_json())

    def test_create_db_command(self):
        """The schema can be created from the command line."""
        self.authenticator.users.drop_all()
        result = self.app.test_cli_runner().invoke(args=['create-db'])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('Created database tables', result.output)
        self.assertEqual(self.register().status_code, 201)
