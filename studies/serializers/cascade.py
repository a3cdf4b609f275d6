from rest_framework import serializers

class HospitalDeleteSerializer(serializers.Serializer):
    deleteCoordinators = serializers.BooleanField(required=False, default=False)


class BulkHospitalDeleteSerializer(serializers.Serializer):
    hospitalIds = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=False)
    deleteCoordinators = serializers.BooleanField(required=False, default=False)


class ProjectHospitalUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=['active', 'inactive'])
    requiredPeriods = serializers.IntegerField(required=False, min_value=1)
