from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoPasswordValidationError


from .models import CustomUser


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    Serializer for user login and token generation.

    Adds the user's email and marketplace role to the token claims so clients
    can route without an extra profile call.
    """
    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['email'] = user.email
        token['role'] = user.role
        return token


class RegistrationSerializer(serializers.ModelSerializer):
    """
    Serializer for user registration.

    Fields :
        required: first_name, last_name, role, email, password, confirm_password
        optional: phone_number, country
    Admin accounts are never self-registered.
    """
    password = serializers.CharField(required=True, write_only=True)
    confirm_password = serializers.CharField(required=True, write_only=True)
    role = serializers.ChoiceField(choices=[
        (CustomUser.ROLE_CLIENT, 'Client'),
        (CustomUser.ROLE_SERVICE_PROVIDER, 'Service Provider'),
    ])

    class Meta:
        model = CustomUser
        fields = ['id', 'first_name', 'last_name', 'role', 'phone_number', 'country', 'email', 'password', 'confirm_password']
        read_only_fields = ['id']
        extra_kwargs = {
            'first_name': {'required': True},
            'last_name': {'required': True},
            'email': {'required': True},
        }

    def validate(self, attrs):
        if attrs['password'] != attrs['confirm_password']:
            raise serializers.ValidationError("Passwords do not match.")
        prospective_user = CustomUser(
            email=attrs.get('email'),
            first_name=attrs.get('first_name'),
            last_name=attrs.get('last_name'),
        )

        try:
            validate_password(attrs['password'], user=prospective_user)
        except DjangoPasswordValidationError as exc:
            raise serializers.ValidationError({'password': list(exc.messages)})

        return attrs

    def create(self, validated_data):
        validated_data.pop('confirm_password')
        return CustomUser.objects.create_user(**validated_data)


class UserProfileSerializer(serializers.ModelSerializer):
    """
    Serializer for user profile retrieval and updates.

    Fields:
        read-only: id, email, role
        - first_name, last_name, phone_number, country
    """
    class Meta:
        model = CustomUser
        fields = ('id', 'first_name', 'last_name', 'email', 'phone_number', 'role', 'country')
        read_only_fields = ('id', 'email', 'role')


class UserSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = CustomUser
        fields = ['id', 'first_name', 'last_name', 'email']
        read_only_fields = fields
