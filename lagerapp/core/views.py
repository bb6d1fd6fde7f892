import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken, TokenError
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.shortcuts import get_object_or_404
from .permissions import is_admin
from .serializers import UserSerializer, UserSummarySerializer, ProfileSerializer, UserCreateSerializer

User = get_user_model()
logger = logging.getLogger('lagerapp.core')


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('Benutzerkonto ist deaktiviert.')
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['full_name'] = user.full_name
        token['role'] = user.role
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh that reports deleted users as an invalid token"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token ist ungültig oder abgelaufen.')
        except ObjectDoesNotExist:
            raise InvalidToken('Token ist ungültig. Benutzer existiert nicht mehr.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """User registration endpoint"""
    serializer = UserCreateSerializer(data=request.data)
    if serializer.is_valid():
        user = serializer.save()
        token = CustomTokenObtainPairSerializer.get_token(user)
        logger.info(f"Registered user {user.username}")
        return Response({
            'user': UserSerializer(user).data,
            'access': str(token.access_token),
            'refresh': str(token),
        }, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get or update the current user's profile"""
    user = request.user
    if request.method == 'PATCH':
        serializer = ProfileSerializer(user, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        serializer.save()
        user.refresh_from_db()

    user_data = UserSerializer(user).data
    user_data['is_admin'] = is_admin(user)
    return Response(user_data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def user_list_create(request):
    """List users (for pickers) or create a new user (admin only)"""
    if request.method == 'GET':
        users = User.objects.filter(is_active=True).order_by('full_name', 'username')
        return Response(UserSummarySerializer(users, many=True).data)

    if not is_admin(request.user):
        return Response({'error': 'Nur Administratoren dürfen Benutzer anlegen'}, status=status.HTTP_403_FORBIDDEN)
    serializer = UserCreateSerializer(data=request.data)
    if serializer.is_valid():
        user = serializer.save()
        logger.info(f"User {user.username} created by {request.user.username}")
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def user_detail(request, pk):
    """Retrieve a user; changes and deletion require admin"""
    user = get_object_or_404(User, pk=pk)

    if request.method == 'GET':
        return Response(UserSerializer(user).data)

    if not is_admin(request.user):
        return Response({'error': 'Nur Administratoren dürfen Benutzer bearbeiten'}, status=status.HTTP_403_FORBIDDEN)

    if request.method == 'PATCH':
        serializer = UserSerializer(user, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if user.pk == request.user.pk:
        return Response({'error': 'Eigenes Konto kann nicht gelöscht werden'}, status=status.HTTP_400_BAD_REQUEST)
    user.delete()
    logger.info(f"User {pk} deleted by {request.user.username}")
    return Response(status=status.HTTP_204_NO_CONTENT)
