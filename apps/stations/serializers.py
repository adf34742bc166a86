from rest_framework import serializers

from apps.accounts.models import UserRole, UserStatus
from .models import Company, Station, StationAssignment


class CompanySerializer(serializers.ModelSerializer):
    station_count = serializers.SerializerMethodField()

    class Meta:
        model = Company
        fields = [
            'id', 'name', 'email', 'phone', 'currency', 'is_active',
            'station_count', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def get_station_count(self, obj):
        return obj.stations.count()


class StationSerializer(serializers.ModelSerializer):
    company_name = serializers.CharField(source='company.name', read_only=True)

    class Meta:
        model = Station
        fields = [
            'id', 'company', 'company_name', 'name', 'code', 'location',
            'is_active', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'company', 'created_at', 'updated_at']

    def validate_code(self, value):
        """Station codes are unique within a company."""
        value = value.strip().upper()
        company = self.context.get('company') or getattr(self.instance, 'company', None)
        if company is not None:
            queryset = Station.objects.filter(company=company, code=value)
            if self.instance:
                queryset = queryset.exclude(pk=self.instance.pk)
            if queryset.exists():
                raise serializers.ValidationError('A station with this code already exists.')
        return value


class StationAssignmentSerializer(serializers.ModelSerializer):
    user_email = serializers.EmailField(source='user.email', read_only=True)
    user_name = serializers.CharField(source='user.get_full_name', read_only=True)
    station_name = serializers.CharField(source='station.name', read_only=True)

    class Meta:
        model = StationAssignment
        fields = [
            'id', 'user', 'user_email', 'user_name', 'station', 'station_name',
            'role', 'is_active', 'assigned_by', 'assigned_at', 'ended_at',
        ]
        read_only_fields = fields


STATION_ROLE_CHOICES = [
    (UserRole.STATION_MANAGER, UserRole.STATION_MANAGER.label),
    (UserRole.SUPERVISOR, UserRole.SUPERVISOR.label),
    (UserRole.ATTENDANT, UserRole.ATTENDANT.label),
]


class AssignmentCreateSerializer(serializers.Serializer):
    """Input for POST /api/user-assignments/"""

    user_id = serializers.UUIDField()
    station_id = serializers.UUIDField()
    role = serializers.ChoiceField(choices=UserRole.choices, required=False)


class BulkAssignmentRowSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    role = serializers.ChoiceField(choices=UserRole.choices, required=False)


class BulkAssignmentSerializer(serializers.Serializer):
    """Input for POST /api/user-assignments/bulk/"""

    station_id = serializers.UUIDField()
    assignments = BulkAssignmentRowSerializer(many=True, allow_empty=False)


class AssignmentUpdateSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=STATION_ROLE_CHOICES, required=False)
    is_active = serializers.BooleanField(required=False)


class StationUsersFilterSerializer(serializers.Serializer):
    """Query parameters for station user listings."""

    role = serializers.ChoiceField(choices=UserRole.choices, required=False)
    status = serializers.ChoiceField(choices=UserStatus.choices, required=False)
    include_inactive = serializers.BooleanField(required=False, default=False)


class StationUsersSummarySerializer(serializers.Serializer):
    station_id = serializers.UUIDField()
    station_name = serializers.CharField()
    total_users = serializers.IntegerField()
    active_users = serializers.IntegerField()
    by_role = serializers.DictField(child=serializers.IntegerField())
