from rest_framework import serializers
from .models import User


class UserSummarySerializer(serializers.ModelSerializer):
    rating_stats = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'username', 'first_name', 'last_name', 'rating_stats']
        read_only_fields = fields

    def get_rating_stats(self, obj):
        return obj.get_rating_stats()
