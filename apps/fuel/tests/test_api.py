import pytest
from django.urls import reverse
from rest_framework import status

from apps.fuel.models import FuelCategory, FuelProduct, FuelSubType


@pytest.mark.django_db
class TestCategoryEndpoints:
    """Tests for /api/fuel/categories/"""

    def test_create_with_defaults(self, admin_client, company):
        response = admin_client.post(
            reverse('fuel:category-list'),
            {'name': 'Diesel', 'code': 'dsl'},
            format='json',
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['code'] == 'DSL'
        assert response.data['color'] == '#0047AB'
        assert response.data['typical_density'] == '0.850'
        assert FuelCategory.objects.get(code='DSL').company == company

    def test_duplicate_code(self, admin_client, petrol):
        response = admin_client.post(
            reverse('fuel:category-list'),
            {'name': 'Petrol Again', 'code': 'PET'},
            format='json',
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'duplicate_fuel_code'

    def test_blank_name(self, admin_client):
        response = admin_client.post(reverse('fuel:category-list'), {'name': ' ', 'code': 'X'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['details']['name'] == ['Category name is required']

    def test_attendant_reads_but_cannot_write(self, attendant_client, petrol):
        list_response = attendant_client.get(reverse('fuel:category-list'))
        create_response = attendant_client.post(
            reverse('fuel:category-list'),
            {'name': 'Kerosene', 'code': 'KER'},
            format='json',
        )

        assert list_response.status_code == status.HTTP_200_OK
        assert list_response.data['results'][0]['subtype_count'] == 0
        assert create_response.status_code == status.HTTP_403_FORBIDDEN

    def test_other_company_hidden(self, admin_client, petrol, foreign_category):
        response = admin_client.get(reverse('fuel:category-list'))

        assert [row['code'] for row in response.data['results']] == ['PET']

    def test_search_and_active_filters(self, admin_client, petrol, company):
        FuelCategory.objects.create(
            company=company, name='Lubricants', code='LUB', typical_density='0.880',
            color='#808080', hazard_class='Class 3', is_active=False,
        )
        url = reverse('fuel:category-list')

        searched = admin_client.get(url, {'search': 'lub'})
        active = admin_client.get(url, {'is_active': 'true'})

        assert [row['code'] for row in searched.data['results']] == ['LUB']
        assert [row['code'] for row in active.data['results']] == ['PET']

    def test_delete_in_use(self, admin_client, petrol, super_grade):
        response = admin_client.delete(reverse('fuel:category-detail', args=[petrol.id]))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'category_in_use'

    def test_rename(self, admin_client, petrol):
        response = admin_client.patch(
            reverse('fuel:category-detail', args=[petrol.id]),
            {'name': 'Motor Spirit'},
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['name'] == 'Motor Spirit'


@pytest.mark.django_db
class TestSubTypeEndpoints:
    """Tests for /api/fuel/subtypes/"""

    def test_create(self, admin_client, petrol):
        response = admin_client.post(
            reverse('fuel:subtype-list'),
            {'category_id': str(petrol.id), 'name': 'Regular', 'code': 'reg'},
            format='json',
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['category_name'] == 'Petrol'
        assert FuelSubType.objects.get(code='REG').category == petrol

    def test_foreign_category(self, admin_client, foreign_category):
        response = admin_client.post(
            reverse('fuel:subtype-list'),
            {'category_id': str(foreign_category.id), 'name': 'ULSD', 'code': 'ULSD'},
            format='json',
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'catalog_scope'

    def test_filter_by_category(self, admin_client, company, petrol, super_grade):
        diesel = FuelCategory.objects.create(
            company=company, name='Diesel', code='DSL', typical_density='0.850',
            color='#0047AB', hazard_class='Class 3',
        )
        FuelSubType.objects.create(category=diesel, name='ULSD', code='ULSD')

        response = admin_client.get(reverse('fuel:subtype-list'), {'category': str(petrol.id)})

        assert [row['code'] for row in response.data['results']] == ['SUP']

    def test_delete_in_use(self, admin_client, super_grade, super95):
        response = admin_client.delete(reverse('fuel:subtype-detail', args=[super_grade.id]))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'subtype_in_use'


@pytest.mark.django_db
class TestProductEndpoints:
    """Tests for /api/fuel/products/"""

    def test_create_with_quality_defaults(self, admin_client, super_grade):
        response = admin_client.post(
            reverse('fuel:product-list'),
            {
                'subtype_id': str(super_grade.id),
                'name': 'Super 97',
                'fuel_code': 'pms97',
                'octane_rating': '97.0',
            },
            format='json',
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['fuel_code'] == 'PMS97'
        assert response.data['category_name'] == 'Petrol'
        assert response.data['quality_standards']['octane_number'] == 91

    def test_blank_name_and_code(self, admin_client, super_grade):
        response = admin_client.post(
            reverse('fuel:product-list'),
            {'subtype_id': str(super_grade.id), 'name': '', 'fuel_code': '   '},
            format='json',
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['details']['name'] == ['Product name is required']
        assert response.data['details']['fuel_code'] == ['Fuel code is required']

    def test_quality_ranges(self, admin_client, super_grade):
        response = admin_client.post(
            reverse('fuel:product-list'),
            {
                'subtype_id': str(super_grade.id),
                'name': 'Bad',
                'fuel_code': 'BAD',
                'density': '2.000',
                'octane_rating': '120.0',
                'sulfur_content': '-1.00',
            },
            format='json',
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        details = response.data['details']
        assert details['density'] == ['Density must be between 0 and 1.5 kg/L']
        assert details['octane_rating'] == ['Octane rating must be between 0 and 100']
        assert details['sulfur_content'] == ['Sulfur content cannot be negative']

    def test_price_band_order(self, admin_client, super_grade):
        response = admin_client.post(
            reverse('fuel:product-list'),
            {
                'subtype_id': str(super_grade.id),
                'name': 'Upside Down',
                'fuel_code': 'UPD',
                'min_selling_price': '200.00',
                'max_selling_price': '150.00',
            },
            format='json',
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'min_selling_price' in response.data['details']

    def test_partial_price_update_checked_against_stored_band(self, admin_client, super95):
        response = admin_client.patch(
            reverse('fuel:product-detail', args=[super95.id]),
            {'min_selling_price': '199.00'},
            format='json',
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_filter_by_category(self, admin_client, petrol, super95):
        response = admin_client.get(reverse('fuel:product-list'), {'category': str(petrol.id)})

        assert [row['fuel_code'] for row in response.data['results']] == ['PMS95']

    def test_delete(self, admin_client, super95):
        response = admin_client.delete(reverse('fuel:product-detail', args=[super95.id]))

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not FuelProduct.objects.filter(id=super95.id).exists()


@pytest.mark.django_db
class TestHierarchyEndpoints:
    """Tests for /api/fuel/hierarchy/ and /api/fuel/category-defaults/"""

    def test_hierarchy(self, attendant_client, petrol, super_grade, super95):
        response = attendant_client.get(reverse('fuel:hierarchy'))

        assert response.status_code == status.HTTP_200_OK
        entry = response.data['data'][0]
        assert entry['category']['code'] == 'PET'
        assert entry['subtypes'][0]['subtype']['code'] == 'SUP'
        assert entry['subtypes'][0]['products'][0]['fuel_code'] == 'PMS95'

    def test_sequential_create(self, admin_client):
        response = admin_client.post(
            reverse('fuel:hierarchy-sequential'),
            {
                'category': {'name': 'Diesel', 'code': 'DSL'},
                'subtype': {'name': 'ULSD', 'code': 'ULSD'},
                'product': {'name': 'Diesel 10ppm', 'fuel_code': 'AGO10', 'sulfur_content': '10.00'},
            },
            format='json',
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['category']['code'] == 'DSL'
        assert response.data['product']['subtype_name'] == 'ULSD'
        assert response.data['product']['quality_standards']['cetane_number'] == 51

    def test_sequential_with_existing_category(self, admin_client, petrol):
        response = admin_client.post(
            reverse('fuel:hierarchy-sequential'),
            {'category': {'id': str(petrol.id)}, 'subtype': {'name': 'Regular', 'code': 'REG'}},
            format='json',
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['product'] is None
        assert FuelSubType.objects.get(code='REG').category == petrol

    def test_sequential_requires_category_details(self, admin_client):
        response = admin_client.post(
            reverse('fuel:hierarchy-sequential'),
            {'category': {'description': 'nameless'}, 'subtype': {'name': 'X', 'code': 'X'}},
            format='json',
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_sequential_admin_only(self, attendant_client):
        response = attendant_client.post(
            reverse('fuel:hierarchy-sequential'),
            {'category': {'name': 'Diesel', 'code': 'DSL'}, 'subtype': {'name': 'ULSD', 'code': 'ULSD'}},
            format='json',
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_category_defaults(self, attendant_client):
        response = attendant_client.get(reverse('fuel:category-defaults'), {'category_name': 'Kerosene'})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['properties']['color'] == '#FFFF00'
        assert response.data['quality_standards']['flash_point'] == 38


@pytest.mark.django_db
class TestBatchAndSearchEndpoints:
    """Tests for /api/fuel/products/batch/ and /api/fuel/search/"""

    def test_batch_reports_failures(self, admin_client, super_grade, super95):
        response = admin_client.post(
            reverse('fuel:product-batch'),
            {'products': [
                {'subtype_id': str(super_grade.id), 'name': 'Super 97', 'fuel_code': 'pms97'},
                {'subtype_id': str(super_grade.id), 'name': 'Clash', 'fuel_code': 'PMS95'},
            ]},
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total'] == 2
        assert response.data['success_count'] == 1
        assert response.data['successful'][0]['fuel_code'] == 'PMS97'
        assert response.data['failed'][0]['index'] == 1
        assert response.data['failed'][0]['code'] == 'duplicate_fuel_code'

    def test_batch_rejects_malformed_rows(self, admin_client, super_grade):
        response = admin_client.post(
            reverse('fuel:product-batch'),
            {'products': [{'subtype_id': str(super_grade.id), 'name': '', 'fuel_code': 'X'}]},
            format='json',
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert not FuelProduct.objects.exists()

    def test_batch_requires_rows(self, admin_client):
        response = admin_client.post(reverse('fuel:product-batch'), {'products': []}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_batch_admin_only(self, attendant_client, super_grade):
        response = attendant_client.post(
            reverse('fuel:product-batch'),
            {'products': [{'subtype_id': str(super_grade.id), 'name': 'Super 97', 'fuel_code': 'PMS97'}]},
            format='json',
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_search(self, attendant_client, petrol, super_grade, super95):
        response = attendant_client.get(reverse('fuel:search'), {'q': 'super'})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total_results'] == 2
        assert response.data['subtypes'][0]['code'] == 'SUP'
        assert response.data['products'][0]['fuel_code'] == 'PMS95'

    def test_search_requires_term(self, attendant_client):
        response = attendant_client.get(reverse('fuel:search'))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['details']['q'] == ['Search term is required']
