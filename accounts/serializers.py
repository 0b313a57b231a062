from django.contrib.auth import get_user_model
from rest_framework import serializers

User = get_user_model()

class SignUpSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True)
    confirm_password = serializers.CharField(write_only=True)
    role = serializers.ChoiceField(choices=User.ROLE_CHOICES, default="aluno", required=False)

    class Meta:
        model = User
        fields = ["full_name", "email", "password", "confirm_password", "role", "series"]

    def validate(self, attrs):
        if attrs["password"] != attrs["confirm_password"]:
            raise serializers.ValidationError("As senhas não coincidem.")
        return attrs

    def create(self, validated_data):
        validated_data.pop("confirm_password")
        user = User(
            full_name=validated_data["full_name"],
            email=validated_data["email"],
            role=validated_data.get("role", "aluno"),
            series=validated_data.get("series", ""),
            username=validated_data["email"],
        )
        user.set_password(validated_data["password"])
        user.save()
        return user


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "full_name", "email", "role", "series", "date_joined"]


class ProfileSerializer(serializers.ModelSerializer):
    """Update personal info (role excluded)."""
    class Meta:
        model = User
        fields = ["full_name", "email", "series"]

    def validate_email(self, value):
        user = self.context['request'].user
        if User.objects.exclude(pk=user.pk).filter(email=value).exists():
            raise serializers.ValidationError("Este email já está em uso.")
        return value

    def update(self, instance, validated_data):
        # Keep username in sync with email
        if "email" in validated_data:
            instance.username = validated_data["email"]
        return super().update(instance, validated_data)
