import json
from unittest.mock import patch

from django.test import TestCase

from devices.models import Device


@patch('devices.quota.quota_today', return_value='2024-03-01')
class DeviceSchemaTests(TestCase):
    def graphql(self, query):
        response = self.client.post('/graphql/', data=json.dumps({'query': query}), content_type='application/json')
        self.assertEqual(response.status_code, 200)
        return response.json()['data']

    def test_init_and_scan(self, mock_today):
        data = self.graphql('mutation { initDevice(deviceId: "abc") { success deviceId stars isNew } }')
        self.assertEqual(data['initDevice'], {'success': True, 'deviceId': 'abc', 'stars': 1, 'isNew': True})

        data = self.graphql('mutation { scan(deviceId: "abc", targetId: "t1") { success score stars } }')
        self.assertTrue(data['scan']['success'])
        self.assertEqual(data['scan']['stars'], 0)

        data = self.graphql('mutation { scan(deviceId: "abc", targetId: "t2") { success errorCode stars retryable } }')
        self.assertEqual(data['scan'], {'success': False, 'errorCode': 'NO_STARS', 'stars': 0, 'retryable': False})

    def test_scan_before_init(self, mock_today):
        data = self.graphql('mutation { scan(deviceId: "nope", targetId: "t1") { success error errorCode } }')
        self.assertFalse(data['scan']['success'])
        self.assertEqual(data['scan']['errorCode'], 'DEVICE_NOT_INITIALIZED')
        self.assertFalse(Device.objects.exists())
