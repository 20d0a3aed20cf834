# apps/users/tests.py
"""
Users app tests - display name and roster endpoints
"""
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.users.services import display_name

User = get_user_model()


class DisplayNameTests(TestCase):
    """Test the identifier shown in the header"""

    def test_full_name_preferred(self):
        user = User.objects.create_user(
            username='msotola', email='marco@example.com', password='x',
            first_name='Marco', last_name='Sotola'
        )
        self.assertEqual(display_name(user), 'Marco Sotola')

    def test_falls_back_to_username(self):
        user = User.objects.create_user(username='operador', email='op@example.com', password='x')
        self.assertEqual(display_name(user), 'operador')

    def test_anonymous_has_no_name(self):
        self.assertEqual(display_name(AnonymousUser()), '')


class UserAPITests(APITestCase):
    """Test identity endpoints"""

    def setUp(self):
        self.user = User.objects.create_user(
            username='operador', password='testpass123', first_name='Ana', last_name='Paz'
        )

    def test_technicians_requires_authentication(self):
        response = self.client.get(reverse('technicians'))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['message'], 'No autenticado')

    def test_default_roster(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.get(reverse('technicians'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            response.data['technicians'],
            ['Alan Spitel', 'Daniel Galvez', 'Gustavo Fernandez', 'Marco Sotola']
        )

    @override_settings(TECHNICIANS=['Solo Uno'])
    def test_roster_from_settings(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.get(reverse('technicians'))

        self.assertEqual(response.data['technicians'], ['Solo Uno'])

    def test_jwt_login_and_me(self):
        """Test token login then current user lookup"""
        token = self.client.post(
            reverse('jwt-create'), {'username': 'operador', 'password': 'testpass123'}, format='json'
        )
        self.assertEqual(token.status_code, status.HTTP_200_OK)

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token.data['access']}")
        response = self.client.get('/api/users/me/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['display_name'], 'Ana Paz')
