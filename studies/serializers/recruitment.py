from rest_framework import serializers

class PeriodCreateSerializer(serializers.Serializer):
    startDate = serializers.DateField()
    endDate = serializers.DateField()


class PeriodUpdateSerializer(serializers.Serializer):
    startDate = serializers.DateField(required=False)
    endDate = serializers.DateField(required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('startDate or endDate is required')
        return attrs
