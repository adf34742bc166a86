import pytest
from decimal import Decimal
from django.urls import reverse
from rest_framework import status
from rest_framework_simplejwt.tokens import AccessToken

from apps.accounts.models import User, UserRole, UserStatus
from apps.staff_accounts.models import StaffAccount
from apps.stations.models import StationAssignment


# =============================================================================
# Authentication Tests
# =============================================================================

@pytest.mark.django_db
class TestLogin:
    """Tests for POST /api/auth/login/"""

    def test_login_success(self, api_client, attendant):
        url = reverse('auth:login')
        response = api_client.post(url, {'email': 'attendant@highway.example.com', 'password': 'TestPass123!'})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['message'] == 'Login successful'
        assert 'access' in response.data['tokens']
        assert 'refresh' in response.data['tokens']
        assert response.data['user']['role'] == UserRole.ATTENDANT

    def test_login_is_case_insensitive(self, api_client, attendant):
        url = reverse('auth:login')
        response = api_client.post(url, {'email': 'Attendant@Highway.example.com', 'password': 'TestPass123!'})

        assert response.status_code == status.HTTP_200_OK

    def test_login_updates_last_login(self, api_client, attendant):
        api_client.post(reverse('auth:login'), {'email': attendant.email, 'password': 'TestPass123!'})

        attendant.refresh_from_db()
        assert attendant.last_login is not None

    def test_wrong_password(self, api_client, attendant):
        url = reverse('auth:login')
        response = api_client.post(url, {'email': attendant.email, 'password': 'WrongPass123!'})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['code'] == 'invalid_credentials'

    def test_unknown_email(self, api_client, db):
        url = reverse('auth:login')
        response = api_client.post(url, {'email': 'nobody@example.com', 'password': 'TestPass123!'})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_suspended_account(self, api_client, attendant):
        attendant.set_status(UserStatus.SUSPENDED)
        attendant.save()

        url = reverse('auth:login')
        response = api_client.post(url, {'email': attendant.email, 'password': 'TestPass123!'})

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['code'] == 'account_inactive'
        assert response.data['error'] == 'Account is suspended'

    def test_deactivated_company(self, api_client, attendant, company):
        company.is_active = False
        company.save()

        response = api_client.post(reverse('auth:login'), {'email': attendant.email, 'password': 'TestPass123!'})

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['code'] == 'account_inactive'

    def test_token_carries_role_and_company(self, api_client, attendant, company):
        response = api_client.post(reverse('auth:login'), {'email': attendant.email, 'password': 'TestPass123!'})

        token = AccessToken(response.data['tokens']['access'])
        assert token['role'] == UserRole.ATTENDANT
        assert token['company_id'] == str(company.id)

    def test_missing_fields(self, api_client, db):
        response = api_client.post(reverse('auth:login'), {})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'email' in response.data['details']
        assert 'password' in response.data['details']


@pytest.mark.django_db
class TestCurrentUser:
    """Tests for GET /api/auth/me/"""

    def test_profile_with_assignments(self, attendant_client, station):
        response = attendant_client.get(reverse('auth:current-user'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['email'] == 'attendant@highway.example.com'
        assert response.data['full_name'] == 'Tom Pump'
        assert response.data['company_name'] == 'Highway Fuels'
        assert response.data['station_ids'] == [str(station.id)]
        assert response.data['assignments'][0]['station_name'] == 'Thika Road'

    def test_requires_authentication(self, api_client):
        response = api_client.get(reverse('auth:current-user'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['status'] == 401


@pytest.mark.django_db
class TestPasswordValidation:
    """Tests for POST /api/users/password/validate/"""

    def test_strong_password(self, api_client):
        response = api_client.post(reverse('users:password-validate'), {'password': 'Str0ng!Pass'})

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {'is_valid': True, 'errors': []}

    def test_weak_password_lists_every_problem(self, api_client):
        response = api_client.post(reverse('users:password-validate'), {'password': 'abc'})

        assert response.data['is_valid'] is False
        assert response.data['errors'] == [
            'Password must be at least 8 characters',
            'Password must contain at least one uppercase letter',
            'Password must contain at least one number',
            'Password must contain at least one special character',
        ]


# =============================================================================
# User Management Tests
# =============================================================================

@pytest.mark.django_db
class TestUserCreate:
    """Tests for POST /api/users/"""

    def test_company_admin_creates_user_in_own_company(self, admin_client, company):
        data = {
            'email': 'New.Attendant@highway.example.com',
            'password': 'Secure#Pass1',
            'first_name': 'New',
            'role': UserRole.ATTENDANT,
        }
        response = admin_client.post(reverse('users:user-list'), data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['email'] == 'new.attendant@highway.example.com'
        assert User.objects.get(email='new.attendant@highway.example.com').company == company

    def test_company_admin_cannot_grant_super_admin(self, admin_client):
        data = {'email': 'boss@example.com', 'password': 'Secure#Pass1', 'role': UserRole.SUPER_ADMIN}
        response = admin_client.post(reverse('users:user-list'), data, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['code'] == 'role_not_allowed'

    def test_company_admin_cannot_target_other_company(self, admin_client, other_company):
        data = {
            'email': 'spy@example.com',
            'password': 'Secure#Pass1',
            'role': UserRole.ATTENDANT,
            'company_id': str(other_company.id),
        }
        response = admin_client.post(reverse('users:user-list'), data, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_super_admin_must_name_company(self, super_client):
        data = {'email': 'orphan@example.com', 'password': 'Secure#Pass1', 'role': UserRole.COMPANY_ADMIN}
        response = super_client.post(reverse('users:user-list'), data, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_super_admin_creates_company_admin(self, super_client, other_company):
        data = {
            'email': 'chief@rival.example.com',
            'password': 'Secure#Pass1',
            'role': UserRole.COMPANY_ADMIN,
            'company_id': str(other_company.id),
        }
        response = super_client.post(reverse('users:user-list'), data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert str(response.data['company']) == str(other_company.id)

    def test_weak_password(self, admin_client):
        data = {'email': 'weak@example.com', 'password': 'password', 'role': UserRole.ATTENDANT}
        response = admin_client.post(reverse('users:user-list'), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'weak_password'
        assert 'Password must contain at least one uppercase letter' in response.data['details']['password']

    def test_duplicate_email(self, admin_client, attendant):
        data = {'email': 'ATTENDANT@highway.example.com', 'password': 'Secure#Pass1', 'role': UserRole.ATTENDANT}
        response = admin_client.post(reverse('users:user-list'), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'user_exists'

    def test_created_with_inactive_status(self, admin_client):
        data = {
            'email': 'later@example.com',
            'password': 'Secure#Pass1',
            'role': UserRole.ATTENDANT,
            'status': UserStatus.INACTIVE,
        }
        response = admin_client.post(reverse('users:user-list'), data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        user = User.objects.get(email='later@example.com')
        assert user.status == UserStatus.INACTIVE
        assert user.is_active is False

    def test_manager_cannot_create_users(self, manager_client):
        data = {'email': 'x@example.com', 'password': 'Secure#Pass1', 'role': UserRole.ATTENDANT}
        response = manager_client.post(reverse('users:user-list'), data, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestStaffAndBulkCreate:
    """Tests for /api/users/staff/ and /api/users/bulk/"""

    def test_staff_user_with_stations(self, admin_client, station, second_station):
        data = {
            'email': 'nozzle@highway.example.com',
            'password': 'Secure#Pass1',
            'role': UserRole.ATTENDANT,
            'station_ids': [str(station.id), str(second_station.id)],
        }
        response = admin_client.post(reverse('users:user-staff'), data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert len(response.data['assignments']) == 2
        assert response.data['failed_assignments'] == []

    def test_staff_user_kept_when_assignment_fails(self, admin_client, station):
        station.is_active = False
        station.save()
        data = {
            'email': 'nozzle@highway.example.com',
            'password': 'Secure#Pass1',
            'role': UserRole.SUPERVISOR,
            'station_ids': [str(station.id)],
        }
        response = admin_client.post(reverse('users:user-staff'), data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['assignments'] == []
        assert response.data['failed_assignments'][0]['error'] == 'Station is not active.'
        assert User.objects.filter(email='nozzle@highway.example.com').exists()

    def test_staff_user_needs_station_role(self, admin_client, station):
        data = {
            'email': 'admin2@highway.example.com',
            'password': 'Secure#Pass1',
            'role': UserRole.COMPANY_ADMIN,
            'station_ids': [str(station.id)],
        }
        response = admin_client.post(reverse('users:user-staff'), data, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert not User.objects.filter(email='admin2@highway.example.com').exists()

    def test_bulk_reports_failed_rows(self, admin_client, attendant):
        data = {'users': [
            {'email': 'one@highway.example.com', 'password': 'Secure#Pass1', 'role': UserRole.ATTENDANT},
            {'email': attendant.email, 'password': 'Secure#Pass1', 'role': UserRole.ATTENDANT},
            {'email': 'two@highway.example.com', 'password': 'short', 'role': UserRole.ATTENDANT},
        ]}
        response = admin_client.post(reverse('users:user-bulk'), data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert [row['email'] for row in response.data['data']] == ['one@highway.example.com']
        assert [row['index'] for row in response.data['errors']] == [1, 2]

    def test_bulk_all_failed(self, admin_client, attendant):
        data = {'users': [
            {'email': attendant.email, 'password': 'Secure#Pass1', 'role': UserRole.ATTENDANT},
        ]}
        response = admin_client.post(reverse('users:user-bulk'), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['data'] == []


@pytest.mark.django_db
class TestUserList:
    """Tests for GET /api/users/"""

    def test_company_admin_sees_company(self, admin_client, company_admin, manager, attendant, foreign_user):
        response = admin_client.get(reverse('users:user-list'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 3

    def test_super_admin_filters_by_company(self, super_client, attendant, foreign_user, other_company):
        response = super_client.get(reverse('users:user-list'), {'company': str(other_company.id)})

        assert [row['email'] for row in response.data['results']] == ['someone@rival.example.com']

    def test_manager_sees_station_staff(self, manager_client, manager, attendant, company_admin):
        response = manager_client.get(reverse('users:user-list'))

        assert {row['email'] for row in response.data['results']} == {manager.email, attendant.email}

    def test_attendant_sees_only_self(self, attendant_client, manager, attendant):
        response = attendant_client.get(reverse('users:user-list'))

        assert response.data['count'] == 1
        assert response.data['results'][0]['email'] == attendant.email

    def test_filters(self, admin_client, station, manager, attendant):
        url = reverse('users:user-list')

        by_role = admin_client.get(url, {'role': UserRole.STATION_MANAGER})
        by_search = admin_client.get(url, {'search': '0711'})
        by_station = admin_client.get(url, {'station': str(station.id)})

        assert [row['email'] for row in by_role.data['results']] == [manager.email]
        assert [row['email'] for row in by_search.data['results']] == [attendant.email]
        assert by_station.data['count'] == 2

    def test_invalid_role_filter(self, admin_client):
        response = admin_client.get(reverse('users:user-list'), {'role': 'JANITOR'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestUserDetail:
    """Tests for /api/users/{id}/ and its sub-resources."""

    def test_retrieve_self(self, attendant_client, attendant):
        response = attendant_client.get(reverse('users:user-detail', args=[attendant.id]))

        assert response.status_code == status.HTTP_200_OK

    def test_attendant_cannot_view_others(self, attendant_client, manager):
        response = attendant_client.get(reverse('users:user-detail', args=[manager.id]))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_admin_cannot_view_other_company(self, admin_client, foreign_user):
        response = admin_client.get(reverse('users:user-detail', args=[foreign_user.id]))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_update_own_profile(self, attendant_client, attendant):
        response = attendant_client.patch(
            reverse('users:user-detail', args=[attendant.id]),
            {'first_name': 'Thomas', 'phone': '0722333444'},
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['full_name'] == 'Thomas Pump'

    def test_cannot_change_own_role(self, attendant_client, attendant):
        response = attendant_client.patch(
            reverse('users:user-detail', args=[attendant.id]),
            {'role': UserRole.STATION_MANAGER},
            format='json',
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'invalid_operation'

    def test_admin_promotes_user(self, admin_client, attendant):
        response = admin_client.put(
            reverse('users:user-detail', args=[attendant.id]),
            {'role': UserRole.SUPERVISOR},
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['role'] == UserRole.SUPERVISOR

    def test_email_taken(self, admin_client, attendant, manager):
        response = admin_client.patch(
            reverse('users:user-detail', args=[attendant.id]),
            {'email': manager.email},
            format='json',
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'user_exists'

    def test_lookup_by_email(self, admin_client, attendant):
        response = admin_client.get(reverse('users:user-by-email', args=['ATTENDANT@highway.example.com']))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['id'] == str(attendant.id)

    def test_lookup_unknown_email(self, admin_client):
        response = admin_client.get(reverse('users:user-by-email', args=['ghost@example.com']))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['code'] == 'user_not_found'


@pytest.mark.django_db
class TestUserStatusAndPasswords:
    """Tests for status, password and reset endpoints."""

    def test_suspend_user(self, admin_client, attendant):
        response = admin_client.patch(
            reverse('users:user-update-status', args=[attendant.id]),
            {'status': UserStatus.SUSPENDED},
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        attendant.refresh_from_db()
        assert attendant.status == UserStatus.SUSPENDED
        assert attendant.is_active is False

    def test_cannot_change_own_status(self, admin_client, company_admin):
        response = admin_client.patch(
            reverse('users:user-update-status', args=[company_admin.id]),
            {'status': UserStatus.INACTIVE},
            format='json',
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_attendant_cannot_change_status(self, attendant_client, manager):
        response = attendant_client.patch(
            reverse('users:user-update-status', args=[manager.id]),
            {'status': UserStatus.INACTIVE},
            format='json',
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_change_own_password(self, attendant_client, attendant):
        response = attendant_client.patch(
            reverse('users:user-password', args=[attendant.id]),
            {'password': 'Brand#New1'},
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        attendant.refresh_from_db()
        assert attendant.check_password('Brand#New1')

    def test_weak_new_password(self, attendant_client, attendant):
        response = attendant_client.patch(
            reverse('users:user-password', args=[attendant.id]),
            {'password': 'weak'},
            format='json',
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'weak_password'

    def test_admin_resets_password(self, admin_client, attendant):
        data = {'email': attendant.email, 'new_password': 'Reset#Pass1', 'confirm_password': 'Reset#Pass1'}
        response = admin_client.patch(reverse('users:user-reset-password'), data, format='json')

        assert response.status_code == status.HTTP_200_OK
        attendant.refresh_from_db()
        assert attendant.check_password('Reset#Pass1')

    def test_reset_password_mismatch(self, admin_client, attendant):
        data = {'email': attendant.email, 'new_password': 'Reset#Pass1', 'confirm_password': 'Reset#Pass2'}
        response = admin_client.patch(reverse('users:user-reset-password'), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'confirm_password' in response.data['details']

    def test_reset_password_other_company(self, admin_client, foreign_user):
        data = {'email': foreign_user.email, 'new_password': 'Reset#Pass1', 'confirm_password': 'Reset#Pass1'}
        response = admin_client.patch(reverse('users:user-reset-password'), data, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.django_db
class TestUserDelete:
    """Tests for DELETE /api/users/{id}/"""

    def test_delete_user(self, admin_client, attendant):
        response = admin_client.delete(reverse('users:user-detail', args=[attendant.id]))

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not User.objects.filter(id=attendant.id).exists()
        assert not StationAssignment.objects.filter(user_id=attendant.id).exists()

    def test_cannot_delete_self(self, admin_client, company_admin):
        response = admin_client.delete(reverse('users:user-detail', args=[company_admin.id]))

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_user_with_staff_account_is_kept(self, admin_client, attendant, station):
        StaffAccount.objects.create(user=attendant, station=station, salary_amount=Decimal('20000.00'))

        response = admin_client.delete(reverse('users:user-detail', args=[attendant.id]))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'user_has_records'
        assert User.objects.filter(id=attendant.id).exists()


@pytest.mark.django_db
class TestHealthCheck:
    """Tests for GET /api/health/"""

    def test_health_check_is_public(self, api_client):
        response = api_client.get(reverse('health-check'))

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {'status': 'ok'}

    def test_plain_http_is_not_redirected(self, api_client, settings):
        response = api_client.get(reverse('health-check'), secure=False)

        assert settings.SECURE_SSL_REDIRECT is False
        assert response.status_code == status.HTTP_200_OK
