import threading
import unittest

from mapcenter.dispatch import UIDispatcher


class TestUIDispatcher(unittest.TestCase):
    def test_runs_posted_work_in_order_on_drain(self):
        dispatcher = UIDispatcher()
        seen = []
        dispatcher.post(seen.append, 1)
        dispatcher.post(seen.append, 2)
        self.assertEqual(seen, [])
        self.assertEqual(dispatcher.drain(), 2)
        self.assertEqual(seen, [1, 2])
        self.assertEqual(dispatcher.drain(), 0)

    def test_work_posted_from_another_thread_runs_on_draining_thread(self):
        dispatcher = UIDispatcher()
        ran_on = []
        worker = threading.Thread(target=dispatcher.post, args=(lambda: ran_on.append(threading.current_thread()),))
        worker.start()
        worker.join()
        dispatcher.drain()
        self.assertEqual(ran_on, [threading.current_thread()])


if __name__ == "__main__":
    unittest.main()
