from rest_framework import serializers

class EthicsUpdateSerializer(serializers.Serializer):
    ethicsSubmitted = serializers.BooleanField()
    ethicsApproved = serializers.BooleanField()
    ethicsSubmittedDate = serializers.DateField(required=False, allow_null=True)
    ethicsApprovedDate = serializers.DateField(required=False, allow_null=True)
