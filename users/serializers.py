# ==================== USERS/SERIALIZERS.PY ====================
from rest_framework import serializers
from django.contrib.auth import authenticate
from django.contrib.auth.password_validation import validate_password
from phonenumber_field.serializerfields import PhoneNumberField

from utils.exceptions import DuplicateResource
from .models import User, UserActivityLog


def ensure_unique_contact(email=None, mobile=None, exclude_user=None):
    """Raise 409 when another account already uses the email or mobile"""
    users = User.objects.all()
    if exclude_user is not None:
        users = users.exclude(pk=exclude_user.pk)
    if email and users.filter(email__iexact=email).exists():
        raise DuplicateResource('User with this email already exists')
    if mobile and users.filter(mobile=mobile).exists():
        raise DuplicateResource('User with this mobile number already exists')


class UserRegistrationSerializer(serializers.ModelSerializer):
    email = serializers.EmailField()
    mobile = PhoneNumberField()
    password = serializers.CharField(write_only=True, min_length=8)
    password_confirm = serializers.CharField(write_only=True)
    role = serializers.ChoiceField(
        choices=[User.ROLE_USER, User.ROLE_VENDOR], default=User.ROLE_USER
    )

    class Meta:
        model = User
        fields = ['email', 'mobile', 'name', 'role', 'password', 'password_confirm']

    def validate(self, data):
        if data['password'] != data['password_confirm']:
            raise serializers.ValidationError({"password": "Passwords do not match"})
        validate_password(data['password'])
        ensure_unique_contact(email=data['email'], mobile=data['mobile'])
        return data

    def create(self, validated_data):
        validated_data.pop('password_confirm')
        password = validated_data.pop('password')
        return User.objects.create_user(password=password, **validated_data)


class UserLoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate(self, data):
        email = data['email'].lower()
        user = authenticate(
            request=self.context.get('request'), email=email, password=data['password']
        )
        if not user:
            inactive = User.objects.filter(email__iexact=email, is_active=False).first()
            if inactive is not None and inactive.check_password(data['password']):
                raise serializers.ValidationError(f"Account is {inactive.status}")
            raise serializers.ValidationError("Invalid credentials")
        data['user'] = user
        return data


class UserProfileSerializer(serializers.ModelSerializer):
    vehicle_count = serializers.SerializerMethodField()
    booking_count = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'email', 'mobile', 'name', 'role', 'status', 'profile_image',
                  'wallet_balance', 'is_email_verified', 'is_mobile_verified',
                  'vehicle_count', 'booking_count', 'created_at', 'updated_at']
        read_only_fields = fields

    def get_vehicle_count(self, obj):
        return obj.vehicles.filter(is_active=True).count()

    def get_booking_count(self, obj):
        return obj.bookings.count()


class UserProfileUpdateSerializer(serializers.ModelSerializer):
    email = serializers.EmailField(required=False)
    mobile = PhoneNumberField(required=False)

    class Meta:
        model = User
        fields = ['name', 'email', 'mobile', 'profile_image']

    def validate(self, data):
        ensure_unique_contact(
            email=data.get('email'), mobile=data.get('mobile'), exclude_user=self.instance
        )
        if 'email' in data:
            data['email'] = data['email'].lower()
        return data


class UserListSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'email', 'mobile', 'name', 'role', 'status', 'wallet_balance',
                  'is_email_verified', 'is_mobile_verified', 'last_login', 'created_at']


class UserStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=User.STATUS_CHOICES)


class UserRoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=User.ROLE_CHOICES)


class UserActivityLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = UserActivityLog
        fields = ['id', 'activity_type', 'metadata', 'ip_address', 'user_agent', 'created_at']
