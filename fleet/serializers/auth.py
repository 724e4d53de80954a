from rest_framework import serializers


class LoginSerializer(serializers.Serializer):
    """Accepts either ``username`` or ``employee_code`` with a password."""
    username = serializers.CharField(required=False, allow_blank=True)
    employee_code = serializers.CharField(required=False, allow_blank=True)
    password = serializers.CharField(trim_whitespace=False)

    def validate_password(self, v):
        if not v:
            raise serializers.ValidationError('password is required')
        return v

    def validate(self, attrs):
        account = (attrs.get('username') or attrs.get('employee_code') or '').strip()
        if not account:
            raise serializers.ValidationError({'username': 'username or employee_code is required'})
        attrs['account'] = account
        return attrs
