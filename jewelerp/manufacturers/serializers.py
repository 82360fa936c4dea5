from rest_framework import serializers
from .models import Manufacturer


class ManufacturerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Manufacturer
        fields = [
            'id', 'name', 'address', 'contact_person', 'email', 'phone', 'specialties', 'lead_time',
            'rating', 'current_load', 'past_job_count', 'active', 'created_at', 'updated_at',
        ]
        # Counters are maintained by the job actions
        read_only_fields = ['current_load', 'past_job_count', 'created_at', 'updated_at']

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Manufacturer name is required.')
        return value

    def validate_specialties(self, value):
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise serializers.ValidationError('Specialties must be a list of strings.')
        return [item.strip() for item in value if item.strip()]
