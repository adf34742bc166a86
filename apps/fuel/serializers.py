from decimal import Decimal

from rest_framework import serializers

from .models import FuelCategory, FuelProduct, FuelSubType


class FuelCategorySerializer(serializers.ModelSerializer):
    """
    Fuel category.

    ``color``, ``typical_density`` and ``hazard_class`` are optional on
    create; missing values are filled from the category name.
    """

    typical_density = serializers.DecimalField(max_digits=6, decimal_places=3, required=False)
    color = serializers.RegexField(r'^#[0-9A-Fa-f]{6}$', required=False)
    hazard_class = serializers.CharField(max_length=50, required=False)
    subtype_count = serializers.SerializerMethodField()

    class Meta:
        model = FuelCategory
        fields = [
            'id', 'company', 'name', 'code', 'description', 'typical_density',
            'color', 'hazard_class', 'is_active', 'subtype_count', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'company', 'created_at', 'updated_at']
        extra_kwargs = {
            'name': {'error_messages': {'blank': 'Category name is required'}},
            'code': {'error_messages': {'blank': 'Category code is required'}},
        }

    def get_subtype_count(self, obj):
        return obj.subtypes.count()

    def validate_code(self, value):
        return value.upper()

    def validate_typical_density(self, value):
        if value is not None and value <= 0:
            raise serializers.ValidationError('Typical density must be positive')
        return value


class FuelSubTypeSerializer(serializers.ModelSerializer):
    category_id = serializers.PrimaryKeyRelatedField(
        source='category', queryset=FuelCategory.objects.all()
    )
    category_name = serializers.CharField(source='category.name', read_only=True)
    product_count = serializers.SerializerMethodField()

    class Meta:
        model = FuelSubType
        fields = [
            'id', 'category_id', 'category_name', 'name', 'code', 'description',
            'is_active', 'product_count', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']
        extra_kwargs = {
            'name': {'error_messages': {'blank': 'Subtype name is required'}},
            'code': {'error_messages': {'blank': 'Subtype code is required'}},
        }

    def get_product_count(self, obj):
        return obj.products.count()

    def validate_code(self, value):
        return value.upper()


class FuelProductSerializer(serializers.ModelSerializer):
    """
    Fuel product with quality parameters.

    Validation:
    - density in (0, 1.5] kg/L
    - octane rating in [0, 100]
    - sulfur content not negative
    - min selling price <= max selling price
    """

    subtype_id = serializers.PrimaryKeyRelatedField(
        source='subtype', queryset=FuelSubType.objects.select_related('category')
    )
    subtype_name = serializers.CharField(source='subtype.name', read_only=True)
    category_name = serializers.CharField(source='subtype.category.name', read_only=True)

    density = serializers.DecimalField(max_digits=6, decimal_places=3, required=False, allow_null=True)
    octane_rating = serializers.DecimalField(max_digits=5, decimal_places=1, required=False, allow_null=True)
    sulfur_content = serializers.DecimalField(max_digits=8, decimal_places=2, required=False, allow_null=True)

    class Meta:
        model = FuelProduct
        fields = [
            'id', 'subtype_id', 'subtype_name', 'category_name', 'name', 'fuel_code',
            'description', 'density', 'octane_rating', 'sulfur_content', 'quality_standards',
            'min_selling_price', 'max_selling_price', 'is_active', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']
        extra_kwargs = {
            'name': {'error_messages': {'blank': 'Product name is required'}},
            'fuel_code': {'error_messages': {'blank': 'Fuel code is required'}},
        }

    def validate_fuel_code(self, value):
        return value.upper()

    def validate_density(self, value):
        if value is not None and (value <= 0 or value > Decimal('1.5')):
            raise serializers.ValidationError('Density must be between 0 and 1.5 kg/L')
        return value

    def validate_octane_rating(self, value):
        if value is not None and (value < 0 or value > 100):
            raise serializers.ValidationError('Octane rating must be between 0 and 100')
        return value

    def validate_sulfur_content(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError('Sulfur content cannot be negative')
        return value

    def validate(self, attrs):
        """Price band must be ordered, also when only one end is updated."""
        min_price = attrs.get('min_selling_price', getattr(self.instance, 'min_selling_price', None))
        max_price = attrs.get('max_selling_price', getattr(self.instance, 'max_selling_price', None))
        if min_price is not None and max_price is not None and min_price > max_price:
            raise serializers.ValidationError({
                'min_selling_price': 'Minimum selling price cannot be greater than maximum selling price'
            })
        return attrs


class FuelFilterSerializer(serializers.Serializer):
    """Query parameters shared by the catalog listings."""

    is_active = serializers.BooleanField(required=False, allow_null=True, default=None)
    category = serializers.UUIDField(required=False)
    subtype = serializers.UUIDField(required=False)
    search = serializers.CharField(required=False, allow_blank=True, max_length=100)


# Hierarchy

class HierarchySubTypeSerializer(serializers.Serializer):
    subtype = FuelSubTypeSerializer()
    products = FuelProductSerializer(many=True)


class HierarchyCategorySerializer(serializers.Serializer):
    category = FuelCategorySerializer()
    subtypes = HierarchySubTypeSerializer(many=True)


class SequentialCategorySerializer(FuelCategorySerializer):
    id = serializers.UUIDField(required=False)

    class Meta(FuelCategorySerializer.Meta):
        read_only_fields = ['company', 'created_at', 'updated_at']
        extra_kwargs = {
            'name': {**FuelCategorySerializer.Meta.extra_kwargs['name'], 'required': False},
            'code': {**FuelCategorySerializer.Meta.extra_kwargs['code'], 'required': False},
        }

    def validate(self, attrs):
        if not attrs.get('id') and not (attrs.get('name') and attrs.get('code')):
            raise serializers.ValidationError('Provide an existing category id or a name and code.')
        return attrs


class SequentialSubTypeSerializer(serializers.Serializer):
    id = serializers.UUIDField(required=False)
    name = serializers.CharField(max_length=100, required=False)
    code = serializers.CharField(max_length=20, required=False)
    description = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        if not attrs.get('id') and not (attrs.get('name') and attrs.get('code')):
            raise serializers.ValidationError('Provide an existing subtype id or a name and code.')
        return attrs


class SequentialProductSerializer(FuelProductSerializer):
    # The subtype comes from the hierarchy being created
    subtype_id = None
    subtype_name = None
    category_name = None

    class Meta(FuelProductSerializer.Meta):
        fields = [
            'name', 'fuel_code', 'description', 'density', 'octane_rating', 'sulfur_content',
            'quality_standards', 'min_selling_price', 'max_selling_price',
        ]


class FuelHierarchyCreateSerializer(serializers.Serializer):
    """Input for POST /api/fuel/hierarchy/sequential/"""

    category = SequentialCategorySerializer()
    subtype = SequentialSubTypeSerializer()
    product = SequentialProductSerializer(required=False)


# Batch and search

MAX_BATCH_PRODUCTS = 100


class FuelProductBatchSerializer(serializers.Serializer):
    """Input for POST /api/fuel/products/batch/"""

    products = FuelProductSerializer(many=True, allow_empty=False)

    def validate_products(self, value):
        if len(value) > MAX_BATCH_PRODUCTS:
            raise serializers.ValidationError(f'At most {MAX_BATCH_PRODUCTS} products per batch')
        return value


class FuelBatchFailureSerializer(serializers.Serializer):
    index = serializers.IntegerField()
    fuel_code = serializers.CharField(allow_null=True)
    error = serializers.CharField()
    code = serializers.CharField()


class FuelProductBatchResultSerializer(serializers.Serializer):
    successful = FuelProductSerializer(many=True)
    failed = FuelBatchFailureSerializer(many=True)
    total = serializers.IntegerField()
    success_count = serializers.IntegerField()
    failure_count = serializers.IntegerField()


class FuelSearchSerializer(serializers.Serializer):
    q = serializers.CharField(max_length=100, error_messages={
        'required': 'Search term is required',
        'blank': 'Search term is required',
    })


class FuelSearchResultSerializer(serializers.Serializer):
    query = serializers.CharField()
    categories = FuelCategorySerializer(many=True)
    subtypes = FuelSubTypeSerializer(many=True)
    products = FuelProductSerializer(many=True)
    total_results = serializers.IntegerField()
