import unittest

from mapcenter.annotations import ANNOTATION_DATA, load_annotations
from mapcenter.models import Annotation, Coordinate


class TestAnnotations(unittest.TestCase):
    def test_static_data(self):
        annotations = load_annotations()
        self.assertEqual([a.title for a in annotations],
                         ["Dr James", "Avon Town", "Brookside Park", "Hazel", "Washington Park"])
        self.assertEqual(annotations[1].coordinate, Coordinate(39.7636057, -86.4080829))

    def test_loading_stops_at_entry_without_coordinates(self):
        data = [
            {"title": "A", "latitude": 1.0, "longitude": 2.0},
            {"title": "B", "latitude": "north"},
            {"title": "C", "latitude": 3.0, "longitude": 4.0},
        ]
        with self.assertLogs("mapcenter.annotations", level="WARNING"):
            annotations = load_annotations(data)
        self.assertEqual(annotations, [Annotation("A", Coordinate(1.0, 2.0))])

    def test_data_is_not_mutated(self):
        before = [dict(d) for d in ANNOTATION_DATA]
        load_annotations(ANNOTATION_DATA)
        self.assertEqual(ANNOTATION_DATA, before)


if __name__ == "__main__":
    unittest.main()
