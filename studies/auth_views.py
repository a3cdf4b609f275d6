"""
Authentication views.

The login endpoint issues both a DRF token (``Token`` keyword, used by
the portal) and a SimpleJWT pair.  Identity is verified here only; the
rest of the API trusts ``request.user`` supplied by the authentication
classes configured in settings.
"""
from __future__ import annotations

from django.contrib.auth import authenticate
from django.contrib.auth.models import update_last_login
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from studies.serializers.auth import LoginSerializer
from studies.services.accounts import serialize_user
from studies.services.audit import log_action


@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    email = s.validated_data['email']
    password = s.validated_data['password']

    user = authenticate(request, username=email, password=password)
    if not user:
        log_action(user=None, action='login', object_type='user', object_id=None,
                   detail={'result': 'fail', 'email': email, 'ip': request.META.get('REMOTE_ADDR')})
        return Response({'ok': False, 'detail': 'invalid email or password'}, status=400)

    log_action(user=user, action='login', object_type='user', object_id=user.id,
               detail={'result': 'ok', 'ip': request.META.get('REMOTE_ADDR')})
    update_last_login(None, user)

    token_obj, _ = Token.objects.get_or_create(user=user)
    refresh = RefreshToken.for_user(user)

    return Response({
        'ok': True,
        'token': token_obj.key,
        'jwt_access': str(refresh.access_token),
        'jwt_refresh': str(refresh),
        'user': serialize_user(user),
        'requiresPasswordChange': user.is_temporary_password,
    }, status=200)

# DRF ScopedRateThrottle uses throttle_scope on the view function
login_view.throttle_scope = 'login'
