from rest_framework import serializers

from .models import User, UserRole, UserStatus


class UserSerializer(serializers.ModelSerializer):
    """User profile as returned by every users endpoint."""

    full_name = serializers.CharField(source='get_full_name', read_only=True)
    company_name = serializers.CharField(source='company.name', read_only=True, default=None)
    station_ids = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'first_name',
            'last_name',
            'full_name',
            'phone',
            'role',
            'status',
            'company',
            'company_name',
            'station_ids',
            'created_at',
            'last_login',
        ]
        read_only_fields = fields

    def get_station_ids(self, obj):
        return [str(station_id) for station_id in obj.station_ids()]


class UserCreateSerializer(serializers.Serializer):
    """Input for POST /api/users/"""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})
    first_name = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    last_name = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True, default='')
    role = serializers.ChoiceField(choices=UserRole.choices)
    company_id = serializers.UUIDField(required=False, allow_null=True)
    status = serializers.ChoiceField(choices=UserStatus.choices, required=False, default=UserStatus.ACTIVE)


class StaffUserCreateSerializer(UserCreateSerializer):
    """Input for POST /api/users/staff/ (user + station assignments)."""

    station_ids = serializers.ListField(child=serializers.UUIDField(), required=False, default=list)


class BulkUserCreateSerializer(serializers.Serializer):
    users = UserCreateSerializer(many=True, allow_empty=False)


class UserUpdateSerializer(serializers.Serializer):
    email = serializers.EmailField(required=False)
    first_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    last_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True)
    role = serializers.ChoiceField(choices=UserRole.choices, required=False)


class UserStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=UserStatus.choices)


class PasswordUpdateSerializer(serializers.Serializer):
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})


class PasswordResetSerializer(serializers.Serializer):
    email = serializers.EmailField()
    new_password = serializers.CharField(write_only=True, style={'input_type': 'password'})
    confirm_password = serializers.CharField(write_only=True, style={'input_type': 'password'})

    def validate(self, attrs):
        """Validate password confirmation."""
        if attrs['new_password'] != attrs['confirm_password']:
            raise serializers.ValidationError({
                'confirm_password': 'Passwords do not match'
            })
        return attrs


class UserFilterSerializer(serializers.Serializer):
    """Query parameters for GET /api/users/"""

    role = serializers.ChoiceField(choices=UserRole.choices, required=False)
    status = serializers.ChoiceField(choices=UserStatus.choices, required=False)
    company = serializers.UUIDField(required=False)
    station = serializers.UUIDField(required=False)
    search = serializers.CharField(required=False, allow_blank=True, max_length=100)


class UserLoginSerializer(serializers.Serializer):
    """Serializer for user login."""

    email = serializers.EmailField(required=True)
    password = serializers.CharField(
        required=True,
        write_only=True,
        style={'input_type': 'password'}
    )


class PasswordCheckSerializer(serializers.Serializer):
    password = serializers.CharField(write_only=True, allow_blank=True)
