import unittest

from navigation.core.subscriptions import SubscriberList


class TestSubscriberList(unittest.TestCase):
    def setUp(self):
        self.publisher = SubscriberList("test")

    def test_values_delivered_in_order(self):
        received = []
        self.publisher.add(received.append)
        for value in range(3):
            self.publisher.publish(value)
        self.assertEqual(received, [0, 1, 2])

    def test_unsubscribe_is_idempotent(self):
        received = []
        subscription = self.publisher.add(received.append)
        subscription.unsubscribe()
        subscription.unsubscribe()
        self.publisher.publish(1)

        self.assertFalse(subscription.active)
        self.assertEqual(len(self.publisher), 0)
        self.assertEqual(received, [])

    def test_failing_callback_does_not_block_others(self):
        def broken(value):
            raise RuntimeError("boom")

        received = []
        self.publisher.add(broken)
        self.publisher.add(received.append)
        with self.assertLogs('navigation.core.subscriptions', level='ERROR'):
            self.publisher.publish("fix")
        self.assertEqual(received, ["fix"])

    def test_callback_may_unsubscribe_itself(self):
        received = []
        holder = {}

        def once(value):
            received.append(value)
            holder['subscription'].unsubscribe()

        holder['subscription'] = self.publisher.add(once)
        self.publisher.publish(1)
        self.publisher.publish(2)
        self.assertEqual(received, [1])

    def test_clear_removes_everyone(self):
        first = self.publisher.add(lambda value: None)
        second = self.publisher.add(lambda value: None)
        self.publisher.clear()
        self.assertEqual(len(self.publisher), 0)
        self.assertFalse(first.active or second.active)


if __name__ == '__main__':
    unittest.main()
