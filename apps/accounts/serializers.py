from rest_framework import serializers

from apps.accounts.services.passwords import MIN_PASSWORD_LENGTH


class CustomerSerializer(serializers.Serializer):
    """Customer profile as shown to its owner. Never exposes the password."""

    id = serializers.IntegerField(read_only=True)
    email = serializers.EmailField(read_only=True)
    name = serializers.CharField(read_only=True)
    phone_number = serializers.CharField(read_only=True)
    date_of_birth = serializers.CharField(read_only=True)
    date_created = serializers.CharField(read_only=True)
    image_url = serializers.CharField(read_only=True, allow_null=True)
    balance = serializers.DecimalField(max_digits=None, decimal_places=2, read_only=True)


class CustomerRegistrationSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(
        write_only=True,
        min_length=MIN_PASSWORD_LENGTH,
        style={'input_type': 'password'},
    )
    password_confirm = serializers.CharField(
        write_only=True,
        required=False,
        style={'input_type': 'password'},
    )
    name = serializers.CharField(max_length=200)
    phone_number = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')
    date_of_birth = serializers.DateField(required=False, allow_null=True, default=None)

    def validate(self, attrs):
        """Validate password confirmation when one is sent."""
        confirm = attrs.pop('password_confirm', None)
        if confirm is not None and confirm != attrs['password']:
            raise serializers.ValidationError({
                'password_confirm': 'Passwords do not match'
            })
        return attrs


class CustomerLoginSerializer(serializers.Serializer):
    email = serializers.CharField()
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})


class ProfileUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    email = serializers.EmailField()
    phone_number = serializers.CharField(max_length=50, required=False, allow_blank=True)
    date_of_birth = serializers.DateField(required=False)
    image_url = serializers.CharField(required=False, allow_blank=True)
    current_password = serializers.CharField(required=False, allow_blank=True, default='')
    new_password = serializers.CharField(required=False, allow_blank=True, default='')
    confirm_password = serializers.CharField(required=False, allow_blank=True, default='')


class TopUpSerializer(serializers.Serializer):
    # Parsed by the service so its messages reach the client unchanged
    amount = serializers.CharField()
