# apps/clients/tests.py
"""
Clients app tests - Testing client serializer and API endpoints
"""
from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.clients.models import Client
from apps.clients.serializers import ClientSerializer
from apps.core.store import KIND_CLIENTS, KIND_CORRECTIVE_TASKS, KIND_VISITS, entity_store

User = get_user_model()


class ClientSerializerTests(APITestCase):
    """Test client validation"""

    def test_report_emails_from_comma_separated_text(self):
        """Test emails are split, trimmed and blanks dropped"""
        serializer = ClientSerializer(data={
            'company_name': 'Hotel Plaza',
            'address': 'Av. Siempre Viva 742',
            'report_emails': ' a@plaza.com, ,b@plaza.com ,',
        })

        self.assertTrue(serializer.is_valid(), serializer.errors)
        self.assertEqual(serializer.validated_data['report_emails'], ['a@plaza.com', 'b@plaza.com'])

    def test_report_emails_from_list(self):
        serializer = ClientSerializer(data={
            'company_name': 'Hotel Plaza',
            'address': 'Av. Siempre Viva 742',
            'report_emails': ['a@plaza.com', '  '],
        })

        self.assertTrue(serializer.is_valid(), serializer.errors)
        self.assertEqual(serializer.validated_data['report_emails'], ['a@plaza.com'])

    def test_company_name_and_address_required(self):
        serializer = ClientSerializer(data={'company_name': '', 'address': ''})

        self.assertFalse(serializer.is_valid())
        self.assertIn('company_name', serializer.errors)
        self.assertIn('address', serializer.errors)


class ClientAPITests(APITestCase):
    """Test client API endpoints"""

    def setUp(self):
        self.user = User.objects.create_user(username='operador', password='testpass123')
        self.client.force_authenticate(user=self.user)

        self.plaza_id = entity_store.create(KIND_CLIENTS, {
            'company_name': 'Hotel Plaza',
            'address': 'Av. Siempre Viva 742',
            'referent_name': 'Laura Gómez',
        })
        self.norte_id = entity_store.create(KIND_CLIENTS, {
            'company_name': 'Shopping Norte',
            'address': 'Ruta 9 km 12',
            'frequency': 'weekly',
        })

    def test_list_page_size_override(self):
        """Test ?page_size= narrows the page and keeps the total count"""
        response = self.client.get(reverse('clients-list'), {'page_size': 1, 'page': 2})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        self.assertEqual([c['id'] for c in response.data['results']], [self.norte_id])
        self.assertIsNone(response.data['next'])

    def test_requires_authentication(self):
        self.client.force_authenticate(user=None)
        response = self.client.get(reverse('clients-list'))

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_list_sorted_by_company_name(self):
        response = self.client.get(reverse('clients-list'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        self.assertEqual(
            [client['company_name'] for client in response.data['results']],
            ['Hotel Plaza', 'Shopping Norte']
        )

    def test_search_by_address_and_referent(self):
        by_address = self.client.get(reverse('clients-list'), {'search': 'ruta 9'})
        by_referent = self.client.get(reverse('clients-list'), {'search': 'laura'})

        self.assertEqual([c['id'] for c in by_address.data['results']], [self.norte_id])
        self.assertEqual([c['id'] for c in by_referent.data['results']], [self.plaza_id])

    def test_create_client(self):
        response = self.client.post(reverse('clients-list'), {
            'company_name': 'Clínica del Sol',
            'address': 'San Martín 100',
            'report_emails': 'admin@sol.com, mantenimiento@sol.com',
            'frequency': 'bimonthly',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['report_emails'], ['admin@sol.com', 'mantenimiento@sol.com'])
        self.assertEqual(response.data['frequency_display']['label'], 'Bimestral')
        self.assertTrue(Client.objects.filter(pk=response.data['id']).exists())

    def test_create_client_missing_company_name(self):
        response = self.client.post(reverse('clients-list'), {
            'address': 'San Martín 100',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'El nombre de la empresa es obligatorio')

    def test_invalid_frequency(self):
        response = self.client.post(reverse('clients-list'), {
            'company_name': 'Clínica del Sol',
            'address': 'San Martín 100',
            'frequency': 'daily',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Frecuencia inválida')

    def test_update_client(self):
        response = self.client.put(reverse('clients-detail', args=[self.plaza_id]), {
            'company_name': 'Hotel Plaza Centro',
            'address': 'Av. Siempre Viva 742',
            'referent_name': 'Laura Gómez',
            'referent_position': 'Gerente',
            'contract_ref': 'CT-2025-01',
            'report_emails': [],
            'frequency': 'monthly',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(entity_store.get(KIND_CLIENTS, self.plaza_id).company_name, 'Hotel Plaza Centro')

    def test_delete_keeps_visits_and_tasks(self):
        """Test deleting a client does not cascade"""
        visit_id = entity_store.create(KIND_VISITS, {
            'client_id': self.plaza_id, 'scheduled_date': '2025-03-10T09:00:00',
        })

        response = self.client.delete(reverse('clients-detail', args=[self.plaza_id]))

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(entity_store.get(KIND_VISITS, visit_id).client_id, self.plaza_id)

    def test_unknown_client_returns_404(self):
        response = self.client.get(reverse('clients-detail', args=['missing']))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Cliente no encontrado')

    def test_overview(self):
        """Test client overview includes visits (latest first) and tasks"""
        older = entity_store.create(KIND_VISITS, {
            'client_id': self.plaza_id, 'scheduled_date': '2025-01-10T09:00:00',
        })
        newer = entity_store.create(KIND_VISITS, {
            'client_id': self.plaza_id, 'scheduled_date': '2025-03-10T09:00:00',
        })
        entity_store.create(KIND_VISITS, {
            'client_id': self.norte_id, 'scheduled_date': '2025-03-11T09:00:00',
        })
        entity_store.create(KIND_CORRECTIVE_TASKS, {
            'client_id': self.plaza_id, 'description': 'Leak', 'reported_by': 'Alan Spitel',
        })

        response = self.client.get(reverse('clients-overview', args=[self.plaza_id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['client']['company_name'], 'Hotel Plaza')
        self.assertEqual([v['id'] for v in response.data['visits']], [newer, older])
        self.assertEqual(len(response.data['corrective_tasks']), 1)
        self.assertEqual(response.data['corrective_tasks'][0]['client_name'], 'Hotel Plaza')
