import pytest
from decimal import Decimal

from apps.fuel.exceptions import (
    DuplicateFuelCodeError,
    FuelCatalogScopeError,
    FuelCategoryInUseError,
    FuelSubTypeInUseError,
)
from apps.fuel.models import FuelCategory, FuelProduct, FuelSubType
from apps.fuel.services import (
    batch_create_products,
    create_category,
    create_fuel_hierarchy_sequential,
    create_product,
    create_subtype,
    delete_category,
    delete_subtype,
    get_default_category_properties,
    get_default_quality_standards,
    get_fuel_hierarchy,
    search_fuel_entities,
    update_catalog_entry,
)


class TestCategoryDefaults:

    def test_known_category(self):
        assert get_default_category_properties(' diesel ') == {
            'color': '#0047AB',
            'typical_density': Decimal('0.85'),
            'hazard_class': 'Class 3',
        }

    def test_unknown_category(self):
        props = get_default_category_properties('LPG')

        assert props['color'] == '#666666'
        assert props['typical_density'] == Decimal('0.80')

    def test_quality_standards_match_on_name(self):
        assert get_default_quality_standards('Premium Gasoline')['octane_number'] == 91
        assert get_default_quality_standards('Auto Diesel')['cetane_number'] == 51
        assert get_default_quality_standards('Kerosene')['smoke_point'] == 20
        assert get_default_quality_standards('Lubricants') == {
            'sulfur_content': 50,
            'flash_point': 60,
            'density': 0.80,
        }


@pytest.mark.django_db
class TestCatalogCreation:

    def test_category_defaults_filled(self, company):
        category = create_category(company=company, name='Diesel', code='dsl')

        assert category.code == 'DSL'
        assert category.color == '#0047AB'
        assert category.typical_density == Decimal('0.85')

    def test_explicit_values_kept(self, company):
        category = create_category(company=company, name='Diesel', code='DSL', color='#123456')

        assert category.color == '#123456'

    def test_code_unique_across_levels(self, company, super_grade):
        with pytest.raises(DuplicateFuelCodeError):
            create_category(company=company, name='Something', code='sup')

    def test_same_code_in_other_company(self, other_company, petrol):
        category = create_category(company=other_company, name='Petrol', code='PET')

        assert category.company == other_company

    def test_product_gets_family_standards(self, super_grade):
        product = create_product(subtype=super_grade, name='Super 93', fuel_code='pms93')

        assert product.fuel_code == 'PMS93'
        assert product.quality_standards['octane_number'] == 91

    def test_product_code_clashes_with_subtype(self, super_grade):
        with pytest.raises(DuplicateFuelCodeError):
            create_product(subtype=super_grade, name='Clash', fuel_code='SUP')


@pytest.mark.django_db
class TestCatalogChanges:

    def test_update_keeps_own_code(self, petrol):
        updated = update_catalog_entry(petrol, code='pet', name='Motor Petrol')

        assert updated.code == 'PET'
        assert updated.name == 'Motor Petrol'

    def test_update_to_taken_code(self, petrol, super95):
        with pytest.raises(DuplicateFuelCodeError):
            update_catalog_entry(petrol, code='PMS95')

    def test_category_with_subtypes_not_deleted(self, petrol, super_grade):
        with pytest.raises(FuelCategoryInUseError):
            delete_category(petrol)

    def test_subtype_with_products_not_deleted(self, super_grade, super95):
        with pytest.raises(FuelSubTypeInUseError):
            delete_subtype(super_grade)

    def test_empty_subtype_deleted(self, petrol):
        subtype = create_subtype(category=petrol, name='Regular', code='REG')

        delete_subtype(subtype)

        assert not FuelSubType.objects.filter(id=subtype.id).exists()


@pytest.mark.django_db
class TestHierarchy:

    def test_inactive_entries_hidden(self, company, petrol, super_grade, super95):
        create_product(subtype=super_grade, name='Old Super', fuel_code='OLD', is_active=False)

        hierarchy = get_fuel_hierarchy(company.id)

        assert hierarchy[0]['category'] == petrol
        assert hierarchy[0]['subtypes'][0]['products'] == [super95]

    def test_include_inactive(self, company, super_grade, super95):
        create_product(subtype=super_grade, name='Old Super', fuel_code='OLD', is_active=False)

        hierarchy = get_fuel_hierarchy(company.id, include_inactive=True)

        assert len(hierarchy[0]['subtypes'][0]['products']) == 2

    def test_sequential_creates_all_levels(self, company):
        result = create_fuel_hierarchy_sequential(
            company=company,
            category={'name': 'Kerosene', 'code': 'KER'},
            subtype={'name': 'Illuminating', 'code': 'IK'},
            product={'name': 'Illuminating Kerosene', 'fuel_code': 'IK01'},
        )

        assert result['subtype'].category == result['category']
        assert result['product'].subtype == result['subtype']

    def test_sequential_reuses_existing_category(self, company, petrol):
        result = create_fuel_hierarchy_sequential(
            company=company,
            category={'id': petrol.id},
            subtype={'name': 'Regular', 'code': 'REG'},
        )

        assert result['category'] == petrol
        assert result['product'] is None

    def test_sequential_rolls_back_on_failure(self, company, super95):
        with pytest.raises(DuplicateFuelCodeError):
            create_fuel_hierarchy_sequential(
                company=company,
                category={'name': 'Diesel', 'code': 'DSL'},
                subtype={'name': 'ULSD', 'code': 'ULSD'},
                product={'name': 'Duplicate', 'fuel_code': 'PMS95'},
            )

        assert not FuelCategory.objects.filter(code='DSL').exists()

    def test_sequential_foreign_category(self, company, foreign_category):
        with pytest.raises(FuelCatalogScopeError):
            create_fuel_hierarchy_sequential(
                company=company,
                category={'id': foreign_category.id},
                subtype={'name': 'ULSD', 'code': 'ULSD'},
            )


@pytest.mark.django_db
class TestBatchAndSearch:

    def test_batch_keeps_good_rows(self, company, super_grade, super95):
        result = batch_create_products(company=company, products=[
            {'subtype': super_grade, 'name': 'Super 97', 'fuel_code': 'PMS97'},
            {'subtype': super_grade, 'name': 'Clash', 'fuel_code': 'PMS95'},
            {'subtype': super_grade, 'name': 'Super 98', 'fuel_code': 'PMS98'},
        ])

        assert result['total'] == 3
        assert result['success_count'] == 2
        assert result['failure_count'] == 1
        assert [p.fuel_code for p in result['successful']] == ['PMS97', 'PMS98']
        assert result['failed'][0]['index'] == 1
        assert result['failed'][0]['code'] == 'duplicate_fuel_code'
        assert FuelProduct.objects.filter(subtype=super_grade).count() == 3

    def test_batch_duplicate_within_batch(self, company, super_grade):
        result = batch_create_products(company=company, products=[
            {'subtype': super_grade, 'name': 'First', 'fuel_code': 'AGO'},
            {'subtype': super_grade, 'name': 'Second', 'fuel_code': 'ago'},
        ])

        assert result['success_count'] == 1
        assert result['failed'][0]['fuel_code'] == 'ago'

    def test_batch_foreign_subtype(self, company, foreign_category):
        foreign_subtype = FuelSubType.objects.create(category=foreign_category, name='ULSD', code='ULSD')

        result = batch_create_products(company=company, products=[
            {'subtype': foreign_subtype, 'name': 'Diesel', 'fuel_code': 'AGO'},
        ])

        assert result['failed'][0]['code'] == 'catalog_scope'
        assert not FuelProduct.objects.filter(fuel_code='AGO').exists()

    def test_search_spans_all_levels(self, company, petrol, super_grade, super95):
        result = search_fuel_entities(company.id, 'sup')

        assert result['categories'] == []
        assert result['subtypes'] == [super_grade]
        assert result['products'] == [super95]
        assert result['total_results'] == 2

    def test_search_matches_codes(self, company, super95):
        result = search_fuel_entities(company.id, 'pms9')

        assert result['products'] == [super95]
        assert result['total_results'] == 1

    def test_search_scoped_to_company(self, company, foreign_category):
        result = search_fuel_entities(company.id, 'diesel')

        assert result['total_results'] == 0
