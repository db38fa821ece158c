"""Tests for counted resources."""

import unittest

from procsim import (
    CapacityExceeded,
    Environment,
    OverRelease,
    Resource,
    UsageError,
)

QUIET = {'logging': {'level': 'CRITICAL'}}


def hold(env, resource, amount, duration, log, name, delay=0):
    if delay:
        yield env.timeout(delay)
    with resource.request(amount) as req:
        yield req
        log.append((name, env.now))
        yield env.timeout(duration)


class TestResource(unittest.TestCase):
    """Test cases for Resource."""

    def setUp(self):
        """Set up test fixtures."""
        self.env = Environment(QUIET)

    def test_resource_initialization(self):
        """Test resource initialization."""
        resource = Resource(self.env, capacity=3)

        self.assertEqual(resource.capacity, 3)
        self.assertEqual(resource.in_use, 0)
        self.assertEqual(resource.available, 3)
        self.assertEqual(resource.discipline, 'fifo')
        self.assertEqual(resource.queue, [])

    def test_immediate_grant(self):
        """Test a request that fits is granted at the current time."""
        resource = Resource(self.env, capacity=2)
        log = []
        self.env.create_process(hold(self.env, resource, 2, 5, log, 'a'))

        self.env.run(until=1)

        self.assertEqual(log, [('a', 0.0)])
        self.assertEqual(resource.in_use, 2)

    def test_fifo_fairness(self):
        """Test capacity-1 requests are granted in arrival order."""
        resource = Resource(self.env, capacity=1)
        log = []
        self.env.create_process(hold(self.env, resource, 1, 10, log, 'holder'))
        for i, name in enumerate(['p0', 'p1', 'p2']):
            self.env.create_process(hold(self.env, resource, 1, 1, log, name, delay=i + 1))

        self.env.run()

        self.assertEqual(log, [
            ('holder', 0.0),
            ('p0', 10.0),
            ('p1', 11.0),
            ('p2', 12.0),
        ])

    def test_partial_release_scenario(self):
        """Test A holds 2 of 2, B asks for 1 at t=1, A releases 1 at t=5."""
        resource = Resource(self.env, capacity=2)
        log = []

        def process_a(env):
            req = resource.request(2)
            yield req
            log.append(('A', env.now))
            yield env.timeout(5)
            resource.release(1)
            yield env.timeout(5)
            resource.release(1)

        def process_b(env):
            yield env.timeout(1)
            req = resource.request(1)
            yield req
            log.append(('B', env.now))
            req.release()

        self.env.create_process(process_a(self.env))
        self.env.create_process(process_b(self.env))
        self.env.run()

        self.assertEqual(log, [('A', 0.0), ('B', 5.0)])
        self.assertEqual(resource.in_use, 0)

    def test_no_queue_jumping(self):
        """Test a small later request waits behind a blocked larger one."""
        resource = Resource(self.env, capacity=3)
        log = []
        self.env.create_process(hold(self.env, resource, 2, 5, log, 'holder'))
        self.env.create_process(hold(self.env, resource, 3, 1, log, 'big', delay=1))
        self.env.create_process(hold(self.env, resource, 1, 1, log, 'small', delay=2))

        self.env.run(until=3)
        self.assertEqual(len(resource.queue), 2)
        self.assertEqual(resource.in_use, 2)

        self.env.run()

        self.assertEqual(log, [('holder', 0.0), ('big', 5.0), ('small', 6.0)])

    def test_priority_discipline(self):
        """Test the priority discipline serves lower priority values first."""
        resource = Resource(self.env, capacity=1, discipline='priority')
        log = []

        def client(env, name, priority, delay):
            yield env.timeout(delay)
            with resource.request(priority=priority) as req:
                yield req
                log.append(name)
                yield env.timeout(1)

        self.env.create_process(client(self.env, 'holder', 0, 0))
        self.env.create_process(client(self.env, 'low', 5, 0.1))
        self.env.create_process(client(self.env, 'high', 1, 0.2))
        self.env.create_process(client(self.env, 'mid', 3, 0.3))
        self.env.run()

        self.assertEqual(log, ['holder', 'high', 'mid', 'low'])

    def test_discipline_from_config(self):
        """Test the default discipline comes from the environment config."""
        env = Environment({'resources': {'discipline': 'priority'}, **QUIET})
        self.assertEqual(Resource(env).discipline, 'priority')

    def test_capacity_exceeded(self):
        """Test requests that can never fit fail synchronously."""
        resource = Resource(self.env, capacity=2)

        with self.assertRaises(CapacityExceeded) as ctx:
            resource.request(3)
        self.assertEqual(ctx.exception.amount, 3)
        self.assertEqual(resource.queue, [])

    def test_over_release(self):
        """Test releasing more than is held fails synchronously."""
        resource = Resource(self.env, capacity=2)
        resource.request(1)

        with self.assertRaises(OverRelease):
            resource.release(2)
        self.assertEqual(resource.in_use, 1)

    def test_invalid_arguments(self):
        """Test non-positive amounts and capacities are rejected."""
        with self.assertRaises(UsageError):
            Resource(self.env, capacity=0)
        with self.assertRaises(UsageError):
            Resource(self.env, discipline='random')

        resource = Resource(self.env)
        with self.assertRaises(UsageError):
            resource.request(0)
        with self.assertRaises(UsageError):
            resource.release(-1)

    def test_release_ungranted_request(self):
        """Test a queued request cannot be released."""
        resource = Resource(self.env, capacity=1)
        resource.request()
        queued = resource.request()

        with self.assertRaises(UsageError):
            queued.release()

    def test_cancelled_head_unblocks_queue(self):
        """Test withdrawing a blocked head lets the next request in."""
        resource = Resource(self.env, capacity=2)
        resource.request(1)
        big = resource.request(2)
        small = resource.request(1)

        self.assertFalse(small.triggered)

        big.cancel()

        self.assertTrue(small.triggered)
        self.assertEqual(resource.in_use, 2)
        self.assertEqual(resource.queue, [])

    def test_invariants_under_contention(self):
        """Test in_use <= capacity and the head never fits after every event."""
        env = Environment({'simulation': {'random_seed': 11}, **QUIET})
        resource = Resource(env, capacity=3)
        violations = []

        def check(env, event):
            if resource.in_use > resource.capacity:
                violations.append(('over', env.now))
            if resource.queue and resource.in_use + resource.queue[0].amount <= resource.capacity:
                violations.append(('grantable head', env.now))

        def worker(env):
            amount = int(env.rng.integers(1, 4))
            with resource.request(amount) as req:
                yield req
                yield env.timeout(float(env.rng.uniform(0.5, 3.0)))

        def arrivals(env):
            for _ in range(60):
                yield env.timeout(float(env.rng.exponential(1.0)))
                env.create_process(worker(env))

        env.add_observer(check)
        env.create_process(arrivals(env))
        env.run()

        self.assertEqual(violations, [])
        self.assertEqual(resource.in_use, 0)
        self.assertEqual(resource.queue, [])
        self.assertEqual(env.stats['processes_succeeded'], 61)


if __name__ == '__main__':
    unittest.main()
