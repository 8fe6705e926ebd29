from decimal import Decimal

from django.contrib.auth import get_user_model
from rest_framework import status
from rest_framework.test import APITestCase

from apps.carts.models import Cart
from apps.catalog.models import Product, ProductSpecification, Store


class TestCarts(APITestCase):
    def setUp(self):
        self.store = Store.objects.create(name='Main', slug='main')
        self.other_store = Store.objects.create(name='Other', slug='other')
        self.user = get_user_model().objects.create_user(
            username='cartuser', password='TestPass123', email='cart@example.com'
        )
        self.size = ProductSpecification.objects.create(
            store=self.store,
            title_ar='المقاس',
            title_en='Size',
            values=[
                {'valueId': 'm', 'valueAr': 'وسط', 'valueEn': 'Medium'},
                {'valueId': 'l', 'valueAr': 'كبير', 'valueEn': 'Large'},
            ],
        )
        self.widget = Product.objects.create(
            store=self.store, title='Widget', price=Decimal('10.00'), stock=5
        )
        self.shirt = Product.objects.create(
            store=self.store,
            title='Shirt',
            price=Decimal('100.00'),
            is_on_sale=True,
            sale_percentage=Decimal('20'),
            stock=50,
            specification_values=[
                {'specificationId': str(self.size.id), 'valueId': 'm', 'value': 'Medium', 'quantity': 2},
                {'specificationId': str(self.size.id), 'valueId': 'l', 'value': 'Large', 'quantity': 6},
            ],
        )
        self.cart_url = '/api/cart/'
        self.item_url = lambda pid: f'/api/cart/items/{pid}/'
        self.store_header = {'HTTP_X_STORE_ID': str(self.store.id)}

    def _guest(self, guest_id='guest-abc'):
        return {**self.store_header, 'HTTP_X_GUEST_ID': guest_id}

    def _size(self, value_id):
        return [{'specificationId': str(self.size.id), 'valueId': value_id}]

    def test_guest_cart_created_lazily_and_guest_id_issued(self):
        res = self.client.get(self.cart_url, **self.store_header)
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        guest_id = res['X-Guest-Id']
        self.assertTrue(guest_id)
        self.assertEqual(res.data['items'], [])
        self.assertTrue(Cart.objects.filter(guest_id=guest_id, store=self.store).exists())

        again = self.client.get(self.cart_url, HTTP_X_GUEST_ID=guest_id, **self.store_header)
        self.assertEqual(again.data['id'], res.data['id'])
        self.assertEqual(Cart.objects.count(), 1)

    def test_add_respects_combined_stock(self):
        headers = self._guest()
        res = self.client.post(self.cart_url, {'product': self.widget.id, 'quantity': 3}, format='json', **headers)
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        res = self.client.post(self.cart_url, {'product': self.widget.id, 'quantity': 4}, format='json', **headers)
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data['error']['code'], 'INSUFFICIENT_STOCK')
        cart = Cart.objects.get(guest_id='guest-abc')
        self.assertEqual(cart.items[0]['quantity'], 3)

    def test_specification_stock_and_display_text(self):
        headers = self._guest()
        res = self.client.post(
            self.cart_url,
            {'product': self.shirt.id, 'quantity': 2, 'selectedSpecifications': self._size('m')},
            format='json',
            **headers,
        )
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        item = res.data['items'][0]
        self.assertEqual(item['priceAtAdd'], '80.00')
        self.assertEqual(item['availableStock'], 2)
        self.assertEqual(item['selectedSpecifications'][0]['titleAr'], 'المقاس')
        self.assertEqual(item['selectedSpecifications'][0]['valueEn'], 'Medium')

        res = self.client.post(
            self.cart_url,
            {'product': self.shirt.id, 'quantity': 1, 'selectedSpecifications': self._size('m')},
            format='json',
            **headers,
        )
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)

        res = self.client.post(
            self.cart_url,
            {'product': self.shirt.id, 'quantity': 1, 'selectedSpecifications': self._size('xl')},
            format='json',
            **headers,
        )
        self.assertEqual(res.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertEqual(res.data['error']['code'], 'SPECIFICATION_MISMATCH')

    def test_product_from_other_store_not_found(self):
        res = self.client.post(
            self.cart_url,
            {'product': self.widget.id, 'quantity': 1},
            format='json',
            HTTP_X_STORE_ID=str(self.other_store.id),
            HTTP_X_GUEST_ID='guest-abc',
        )
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)

    def test_update_and_remove(self):
        self.client.force_authenticate(user=self.user)
        self.client.post(self.cart_url, {'product': self.widget.id, 'quantity': 1}, format='json', **self.store_header)
        res = self.client.put(self.item_url(self.widget.id), {'quantity': 4}, format='json', **self.store_header)
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data['items'][0]['quantity'], 4)
        res = self.client.put(self.item_url(self.widget.id), {'quantity': 6}, format='json', **self.store_header)
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        res = self.client.put(self.item_url(self.widget.id), {'quantity': 0}, format='json', **self.store_header)
        self.assertEqual(res.data['items'], [])
        res = self.client.delete(self.item_url(self.widget.id), **self.store_header)
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)

    def test_clear_cart(self):
        headers = self._guest()
        self.client.post(self.cart_url, {'product': self.widget.id, 'quantity': 1}, format='json', **headers)
        res = self.client.delete(self.cart_url, **headers)
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data['items'], [])
        self.assertEqual(Cart.objects.get(guest_id='guest-abc').items, [])

    def test_deactivated_product_pruned_on_read(self):
        headers = self._guest()
        self.client.post(self.cart_url, {'product': self.widget.id, 'quantity': 2}, format='json', **headers)
        Product.objects.filter(id=self.widget.id).update(is_active=False)
        res = self.client.get(self.cart_url, **headers)
        self.assertEqual(res.data['items'], [])
        self.assertEqual(res.data['removedCount'], 1)
        self.assertEqual(Cart.objects.get(guest_id='guest-abc').items, [])

    def test_totals(self):
        headers = self._guest()
        self.client.post(
            self.cart_url,
            {'product': self.shirt.id, 'quantity': 2, 'selectedSpecifications': self._size('l')},
            format='json',
            **headers,
        )
        res = self.client.get('/api/cart/totals/', **headers)
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data['subtotal'], '160.00')
        self.assertEqual(res.data['totalDiscount'], '40.00')
        self.assertEqual(res.data['tax'], '16.00')
        self.assertEqual(res.data['total'], '176.00')

    def test_merge_guest_cart_once(self):
        guest = self._guest()
        self.client.post(self.cart_url, {'product': self.widget.id, 'quantity': 2}, format='json', **guest)
        self.client.post(
            self.cart_url,
            {'product': self.shirt.id, 'quantity': 1, 'selectedSpecifications': self._size('l')},
            format='json',
            **guest,
        )
        self.client.force_authenticate(user=self.user)
        self.client.post(self.cart_url, {'product': self.widget.id, 'quantity': 1}, format='json', **self.store_header)

        res = self.client.post('/api/cart/merge/', {'guestId': 'guest-abc'}, format='json', **self.store_header)
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data, {'mergedCount': 1, 'updatedCount': 1, 'skippedCount': 0})
        self.assertFalse(Cart.objects.filter(guest_id='guest-abc').exists())
        user_cart = Cart.objects.get(user=self.user, store=self.store)
        self.assertEqual([(i['product'], i['quantity']) for i in user_cart.items], [(self.widget.id, 3), (self.shirt.id, 1)])

        again = self.client.post('/api/cart/merge/', {'guestId': 'guest-abc'}, format='json', **self.store_header)
        self.assertEqual(again.data['mergedCount'], 0)

    def test_merge_requires_login(self):
        res = self.client.post('/api/cart/merge/', {'guestId': 'guest-abc'}, format='json', **self.store_header)
        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_guest_recovery_view(self):
        headers = self._guest()
        self.client.post(self.cart_url, {'product': self.widget.id, 'quantity': 1}, format='json', **headers)
        res = self.client.get('/api/cart/guest/guest-abc/', **self.store_header)
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data['items'][0]['product'], self.widget.id)
        missing = self.client.get('/api/cart/guest/nobody/', **self.store_header)
        self.assertEqual(missing.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(Cart.objects.filter(guest_id='nobody').exists())

    def test_unknown_store(self):
        res = self.client.get(self.cart_url, HTTP_X_STORE_ID='9999')
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
