# apps/users/serializers.py
from django.contrib.auth import get_user_model
from rest_framework import serializers

from .services import display_name


class UserSerializer(serializers.ModelSerializer):
    display_name = serializers.SerializerMethodField()

    class Meta:
        model = get_user_model()
        fields = ('id', 'username', 'email', 'first_name', 'last_name', 'display_name')
        read_only_fields = ('id', 'username')
        ref_name = 'OperatorUserSerializer'

    def get_display_name(self, obj):
        return display_name(obj)
