import unittest
from concurrent.futures import ThreadPoolExecutor
from unittest import mock

from geopy.exc import GeocoderParseError, GeocoderServiceError
from geopy.location import Location

from mapcenter.dispatch import UIDispatcher
from mapcenter.geocode import (
    NominatimReverseGeocoder,
    ReverseGeocodeDebouncer,
    format_address,
    placemark_from_location,
)
from mapcenter.models import Coordinate, Placemark

from tests.fakes import FakeGeocoder

START = Coordinate(39.7684, -86.1581)
NEAR = Coordinate(39.7687, -86.1581)  # ~33 m north
FAR = Coordinate(39.7694, -86.1581)  # ~111 m north
FARTHER = Coordinate(39.7710, -86.1581)


class TestFormatAddress(unittest.TestCase):
    def test_number_and_street(self):
        placemark = Placemark(sub_thoroughfare="221B", thoroughfare="Baker Street")
        self.assertEqual(format_address(placemark), "221B Baker Street")

    def test_missing_number_keeps_leading_space(self):
        self.assertEqual(format_address(Placemark(thoroughfare="Baker Street")), " Baker Street")

    def test_empty_placemark(self):
        self.assertEqual(format_address(Placemark()), " ")


class TestPlacemarkFromLocation(unittest.TestCase):
    def test_maps_nominatim_address_fields(self):
        raw = {
            "address": {
                "house_number": "100",
                "road": "North Meridian Street",
                "city": "Indianapolis",
                "postcode": "46204",
                "country": "United States",
            }
        }
        location = Location("100 North Meridian Street", (39.77, -86.16, 0), raw)
        placemark = placemark_from_location(location)
        self.assertEqual(placemark.sub_thoroughfare, "100")
        self.assertEqual(placemark.thoroughfare, "North Meridian Street")
        self.assertEqual(placemark.locality, "Indianapolis")
        self.assertEqual(placemark.postal_code, "46204")

    def test_pedestrian_street_used_without_road(self):
        location = Location("Monument Circle", (39.77, -86.16, 0), {"address": {"pedestrian": "Monument Circle"}})
        placemark = placemark_from_location(location)
        self.assertIsNone(placemark.sub_thoroughfare)
        self.assertEqual(placemark.thoroughfare, "Monument Circle")


class TestNominatimReverseGeocoder(unittest.TestCase):
    def setUp(self):
        self.geolocator = mock.Mock()
        self.executor = ThreadPoolExecutor(max_workers=1)
        self.geocoder = NominatimReverseGeocoder(geolocator=self.geolocator, executor=self.executor)
        self.results = []

    def tearDown(self):
        self.executor.shutdown(wait=True)

    def completion(self, placemarks, error):
        self.results.append((placemarks, error))

    def test_success_returns_one_placemark(self):
        self.geolocator.reverse.return_value = Location(
            "x", (39.77, -86.16, 0), {"address": {"house_number": "1", "road": "Main St"}}
        )
        self.geocoder.reverse_geocode(START, self.completion).result(timeout=5)
        placemarks, error = self.results[0]
        self.assertIsNone(error)
        self.assertEqual(placemarks, [Placemark(sub_thoroughfare="1", thoroughfare="Main St")])
        args, kwargs = self.geolocator.reverse.call_args
        self.assertEqual(args[0], START.as_tuple())
        self.assertTrue(kwargs["exactly_one"])

    def test_no_result_returns_empty_list(self):
        self.geolocator.reverse.return_value = None
        self.geocoder.reverse_geocode(START, self.completion).result(timeout=5)
        self.assertEqual(self.results, [([], None)])

    def test_service_error_is_reported(self):
        self.geolocator.reverse.side_effect = GeocoderServiceError("down")
        self.geocoder.reverse_geocode(START, self.completion).result(timeout=5)
        placemarks, error = self.results[0]
        self.assertIsNone(placemarks)
        self.assertIsInstance(error, GeocoderServiceError)

    def test_null_address_gives_empty_placemark(self):
        self.geolocator.reverse.return_value = Location("x", (39.77, -86.16, 0), {"address": None})
        self.geocoder.reverse_geocode(START, self.completion).result(timeout=5)
        self.assertEqual(self.results, [([Placemark()], None)])

    def test_malformed_address_is_reported_as_parse_error(self):
        self.geolocator.reverse.return_value = Location("x", (39.77, -86.16, 0), {"address": ["Main St"]})
        future = self.geocoder.reverse_geocode(START, self.completion)
        future.result(timeout=5)
        self.assertIsNone(future.exception())
        placemarks, error = self.results[0]
        self.assertIsNone(placemarks)
        self.assertIsInstance(error, GeocoderParseError)

    def test_pool_size_is_configurable(self):
        geocoder = NominatimReverseGeocoder(geolocator=self.geolocator, max_workers=3)
        self.assertEqual(geocoder.executor._max_workers, 3)
        geocoder.executor.shutdown(wait=False)


class TestReverseGeocodeDebouncer(unittest.TestCase):
    def setUp(self):
        self.geocoder = FakeGeocoder()
        self.dispatcher = UIDispatcher()
        self.published = []
        self.debouncer = ReverseGeocodeDebouncer(self.geocoder, self.dispatcher, self.published.append)

    def test_missing_previous_center_always_triggers(self):
        self.assertTrue(self.debouncer.on_map_center_changed(START))
        self.assertEqual(len(self.geocoder.calls), 1)
        self.assertEqual(self.debouncer.previous_center, START)

    def test_small_move_does_not_trigger(self):
        self.debouncer.seed(START)
        self.assertFalse(self.debouncer.on_map_center_changed(NEAR))
        self.assertEqual(self.geocoder.calls, [])
        self.assertEqual(self.debouncer.previous_center, START)

    def test_large_move_triggers_once_and_updates_center_immediately(self):
        self.debouncer.seed(START)
        self.assertTrue(self.debouncer.on_map_center_changed(FAR))
        self.assertEqual(len(self.geocoder.calls), 1)
        self.assertEqual(self.geocoder.calls[0][0], FAR)
        # updated before the lookup completes
        self.assertEqual(self.debouncer.previous_center, FAR)

    def test_burst_collapses_to_first_crossing(self):
        self.debouncer.seed(START)
        self.debouncer.on_map_center_changed(FAR)
        self.debouncer.on_map_center_changed(Coordinate(39.7696, -86.1581))
        self.assertEqual(len(self.geocoder.calls), 1)

    def test_result_published_only_on_ui_drain(self):
        self.debouncer.on_map_center_changed(START)
        self.geocoder.complete(0, placemarks=[Placemark("221B", "Baker Street"), Placemark("1", "Other")])
        self.assertEqual(self.published, [])
        self.dispatcher.drain()
        self.assertEqual(self.published, ["221B Baker Street"])

    def test_error_is_discarded(self):
        self.debouncer.on_map_center_changed(START)
        with self.assertLogs("mapcenter.geocode", level="WARNING"):
            self.geocoder.complete(0, error=GeocoderServiceError("down"))
        self.dispatcher.drain()
        self.assertEqual(self.published, [])

    def test_empty_result_is_discarded(self):
        self.debouncer.on_map_center_changed(START)
        self.geocoder.complete(0, placemarks=[])
        self.assertEqual(self.dispatcher.drain(), 0)

    def test_out_of_order_results_are_accepted_by_default(self):
        self.debouncer.on_map_center_changed(START)
        self.debouncer.on_map_center_changed(FARTHER)
        self.geocoder.complete(1, placemarks=[Placemark("2", "New Street")])
        self.geocoder.complete(0, placemarks=[Placemark("1", "Old Street")])
        self.dispatcher.drain()
        self.assertEqual(self.published, ["2 New Street", "1 Old Street"])

    def test_drop_stale_discards_out_of_order_results(self):
        self.debouncer.drop_stale = True
        self.debouncer.on_map_center_changed(START)
        self.debouncer.on_map_center_changed(FARTHER)
        self.geocoder.complete(1, placemarks=[Placemark("2", "New Street")])
        self.geocoder.complete(0, placemarks=[Placemark("1", "Old Street")])
        self.dispatcher.drain()
        self.assertEqual(self.published, ["2 New Street"])


if __name__ == "__main__":
    unittest.main()
