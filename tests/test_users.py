from users.models import User, UserActivityLog

from .factories import APITestBase, PASSWORD, make_admin, make_user, make_vendor

REGISTER_URL = '/api/v1/auth/register/'
LOGIN_URL = '/api/v1/auth/login/'
PROFILE_URL = '/api/v1/auth/profile/'


class RegistrationTests(APITestBase):

    def payload(self, **overrides):
        data = {
            'email': 'asha@example.com',
            'mobile': '+919876543210',
            'name': 'Asha Rao',
            'password': PASSWORD,
            'password_confirm': PASSWORD,
        }
        data.update(overrides)
        return data

    def test_register_returns_tokens(self):
        response = self.client.post(REGISTER_URL, self.payload(), format='json')

        self.assertEqual(response.status_code, 201)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['role'], User.ROLE_USER)
        self.assertEqual(response.data['user']['wallet_balance'], '0.00')

    def test_register_as_vendor(self):
        response = self.client.post(REGISTER_URL, self.payload(role='vendor'), format='json')

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['user']['role'], User.ROLE_VENDOR)

    def test_cannot_self_register_as_admin(self):
        response = self.client.post(REGISTER_URL, self.payload(role='admin'), format='json')
        self.assertEqual(response.status_code, 400)

    def test_duplicate_email_is_conflict(self):
        self.client.post(REGISTER_URL, self.payload(), format='json')
        response = self.client.post(REGISTER_URL, self.payload(mobile='+919876543211'), format='json')

        self.assertEqual(response.status_code, 409)

    def test_duplicate_mobile_is_conflict(self):
        self.client.post(REGISTER_URL, self.payload(), format='json')
        response = self.client.post(REGISTER_URL, self.payload(email='other@example.com'), format='json')

        self.assertEqual(response.status_code, 409)

    def test_password_mismatch(self):
        response = self.client.post(REGISTER_URL, self.payload(password_confirm='Different!2024'), format='json')
        self.assertEqual(response.status_code, 400)


class LoginTests(APITestBase):

    def setUp(self):
        super().setUp()
        self.user = make_user(email='driver@example.com')

    def test_login_success_logs_activity(self):
        response = self.client.post(LOGIN_URL, {'email': 'driver@example.com', 'password': PASSWORD}, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertIn('access', response.data)
        self.assertTrue(UserActivityLog.objects.filter(user=self.user, activity_type='login').exists())

    def test_wrong_password(self):
        response = self.client.post(LOGIN_URL, {'email': 'driver@example.com', 'password': 'nope-nope'}, format='json')
        self.assertEqual(response.status_code, 400)

    def test_suspended_account_cannot_login(self):
        self.user.status = User.STATUS_SUSPENDED
        self.user.save()

        response = self.client.post(LOGIN_URL, {'email': 'driver@example.com', 'password': PASSWORD}, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertIn('suspended', str(response.data))


class ProfileTests(APITestBase):

    def test_profile_requires_auth(self):
        response = self.client.get(PROFILE_URL)
        self.assertEqual(response.status_code, 401)
        response = self.client.patch(PROFILE_URL, {'name': 'Nobody'}, format='json')
        self.assertEqual(response.status_code, 401)

    def test_get_and_update_profile(self):
        user = make_user()
        self.login_as(user)

        response = self.client.get(PROFILE_URL)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['vehicle_count'], 0)

        response = self.client.patch(PROFILE_URL, {'name': 'New Name'}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['name'], 'New Name')

    def test_update_to_taken_email_is_conflict(self):
        make_user(email='taken@example.com')
        self.login_as(make_user())

        response = self.client.patch(PROFILE_URL, {'email': 'taken@example.com'}, format='json')
        self.assertEqual(response.status_code, 409)


class AdminUserTests(APITestBase):

    def setUp(self):
        super().setUp()
        self.admin = make_admin()
        self.user = make_user()
        make_vendor()

    def test_non_admin_forbidden(self):
        self.login_as(self.user)
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, 403)

    def test_list_is_paginated(self):
        self.login_as(self.admin)
        response = self.client.get('/api/v1/users/', {'limit': 2})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['count'], 3)
        self.assertEqual(response.data['total_pages'], 2)
        self.assertEqual(len(response.data['results']), 2)

    def test_filter_by_role(self):
        self.login_as(self.admin)
        response = self.client.get('/api/v1/users/', {'role': 'vendor'})
        self.assertEqual(response.data['count'], 1)

    def test_stats(self):
        self.login_as(self.admin)
        response = self.client.get('/api/v1/users/stats/')

        self.assertEqual(response.data['total_users'], 1)
        self.assertEqual(response.data['total_vendors'], 1)
        self.assertEqual(response.data['active_users'], 3)

    def test_suspend_user(self):
        self.login_as(self.admin)
        response = self.client.patch(f'/api/v1/users/{self.user.id}/status/', {'status': 'suspended'}, format='json')

        self.assertEqual(response.status_code, 200)
        self.user.refresh_from_db()
        self.assertFalse(self.user.is_active)
        self.assertTrue(UserActivityLog.objects.filter(user=self.user, activity_type='status_change').exists())

    def test_cannot_change_own_role(self):
        self.login_as(self.admin)
        response = self.client.patch(f'/api/v1/users/{self.admin.id}/role/', {'role': 'user'}, format='json')
        self.assertEqual(response.status_code, 400)

    def test_delete_user(self):
        self.login_as(self.admin)
        response = self.client.delete(f'/api/v1/users/{self.user.id}/')

        self.assertEqual(response.status_code, 200)
        self.assertFalse(User.objects.filter(pk=self.user.pk).exists())

    def test_cannot_delete_self(self):
        self.login_as(self.admin)
        response = self.client.delete(f'/api/v1/users/{self.admin.id}/')
        self.assertEqual(response.status_code, 403)
