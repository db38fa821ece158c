"""Tests for the event queue."""

import unittest

from procsim.core.event_queue import EventQueue
from procsim.core.events import Event, EventKind
from procsim.core.exceptions import EmptySchedule, UsageError


def make_event(kind=EventKind.USER_SIGNAL):
    # The queue never touches the environment of an event
    return Event(None, kind)


class TestEventQueue(unittest.TestCase):
    """Test cases for EventQueue."""

    def setUp(self):
        """Set up test fixtures."""
        self.queue = EventQueue()

    def test_empty_queue(self):
        """Test empty queue behavior."""
        self.assertTrue(self.queue.is_empty())
        self.assertEqual(self.queue.size(), 0)
        self.assertIsNone(self.queue.peek())
        self.assertEqual(self.queue.next_live_time(), float('inf'))

        with self.assertRaises(EmptySchedule):
            self.queue.pop_next()

    def test_time_ordering(self):
        """Test events pop in time order regardless of insertion order."""
        for t in (3.0, 1.0, 2.0):
            self.queue.schedule(make_event(), t)

        times = [self.queue.pop_next().scheduled_time for _ in range(3)]
        self.assertEqual(times, [1.0, 2.0, 3.0])

    def test_equal_times_fire_in_scheduling_order(self):
        """Test ties are broken by ascending sequence id."""
        events = [make_event() for _ in range(5)]
        for event in events:
            self.queue.schedule(event, 4.0)

        popped = [self.queue.pop_next() for _ in range(5)]
        self.assertEqual(popped, events)
        ids = [event.sequence_id for event in popped]
        self.assertEqual(ids, sorted(ids))

    def test_cancelled_event_still_popped(self):
        """Test a cancelled event keeps its slot and is returned in its turn."""
        first = make_event()
        second = make_event()
        self.queue.schedule(first, 1.0)
        self.queue.schedule(second, 2.0)

        self.queue.cancel(first)

        self.assertEqual(self.queue.next_live_time(), 2.0)
        popped = self.queue.pop_next()
        self.assertIs(popped, first)
        self.assertTrue(popped.cancelled)
        self.assertIs(self.queue.pop_next(), second)
        self.assertTrue(self.queue.is_empty())

    def test_event_cannot_be_scheduled_twice(self):
        """Test an event is inserted at most once."""
        event = make_event()
        self.queue.schedule(event, 1.0)

        with self.assertRaises(UsageError):
            self.queue.schedule(event, 2.0)
        self.assertEqual(len(self.queue), 1)

    def test_negative_time_rejected(self):
        """Test events cannot be scheduled before time zero."""
        with self.assertRaises(UsageError):
            self.queue.schedule(make_event(), -1.0)

    def test_pending_in_firing_order(self):
        """Test pending() lists events without consuming them."""
        late = make_event()
        early = make_event()
        self.queue.schedule(late, 9.0)
        self.queue.schedule(early, 1.0)

        self.assertEqual(self.queue.pending(), [early, late])
        self.assertEqual(self.queue.size(), 2)


if __name__ == '__main__':
    unittest.main()
