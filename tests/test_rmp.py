"""
Unit tests for instructor resolution and the RMP client.

The remote service is never contacted: the resolver gets a mocked client
and the client gets a mocked requests session.
"""

import unittest
from unittest import mock

import requests

from coursecatalog.model import RmpIndexEntry
from coursecatalog.rmp import InstructorResolver, RmpClient


def node(rmp_id: str, first: str, last: str, school: str = "University of Connecticut") -> dict:
    return {"id": rmp_id, "firstName": first, "lastName": last, "school": {"name": school, "id": "U1"}}


class TestInstructorResolver(unittest.TestCase):
    def setUp(self) -> None:
        self.client = mock.Mock()
        self.client.search.return_value = []
        self.index = [
            RmpIndexEntry(name="John Smithe", rmp_ids=["T1"]),
            RmpIndexEntry(name="John Smith Jr", rmp_ids=["T2"]),
            RmpIndexEntry(name="Ada Lovelace", rmp_ids=["T3", "T4"]),
        ]
        self.resolver = InstructorResolver(self.index, client=self.client)

    def test_exact_match_is_case_insensitive_and_offline(self) -> None:
        res = self.resolver.resolve("ada lovelace")
        self.assertEqual(res.name, "ada lovelace")
        self.assertEqual(res.rmp_ids, ["T3", "T4"])
        self.client.search.assert_not_called()

    def test_fuzzy_match_returns_best_local_entry_under_local_name(self) -> None:
        res = self.resolver.resolve("John Smith")
        self.assertEqual(res.name, "John Smithe")
        self.assertEqual(res.rmp_ids, ["T1"])
        self.client.search.assert_not_called()

    def test_returned_ids_are_copies(self) -> None:
        res = self.resolver.resolve("Ada Lovelace")
        res.rmp_ids.append("X")
        self.assertEqual(self.index[2].rmp_ids, ["T3", "T4"])

    def test_remote_fallback_filters_institution_and_names(self) -> None:
        self.client.search.return_value = [
            node("R1", "Grace", "Hopper"),
            node("R2", "Grace", "Hopper", school="Yale University"),
            node("R3", "Grace Brewster", "Hopper"),
            node("R4", "Alan", "Turing"),
        ]
        res = self.resolver.resolve("Grace Hopper")

        self.client.search.assert_called_once_with("Grace Hopper")
        self.assertEqual(res.name, "Grace Hopper")
        self.assertEqual(res.rmp_ids, ["R1", "R3"])

    def test_remote_accepts_close_spelling(self) -> None:
        self.client.search.return_value = [node("R5", "Gracie", "Hopper")]
        res = self.resolver.resolve("Grace Hopper")
        self.assertEqual(res.rmp_ids, ["R5"])

    def test_remote_rejects_partial_names(self) -> None:
        self.client.search.return_value = [
            node("R8", "Grace", ""),
            node("R9", "", "Hopper"),
            node("R10", "Grace", "Hopper"),
        ]
        res = self.resolver.resolve("Grace Hopper")
        self.assertEqual(res.rmp_ids, ["R10"])

    def test_remote_failure_yields_empty_ids(self) -> None:
        self.client.search.return_value = None
        res = self.resolver.resolve("Grace Hopper")
        self.assertEqual(res.name, "Grace Hopper")
        self.assertEqual(res.rmp_ids, [])

    def test_comma_list_short_circuits(self) -> None:
        res = self.resolver.resolve("Hopper, Grace, Turing")
        self.assertEqual(res.rmp_ids, [])
        self.client.search.assert_not_called()

    def test_blank_name_short_circuits(self) -> None:
        res = self.resolver.resolve("   ")
        self.assertEqual(res.rmp_ids, [])
        self.client.search.assert_not_called()


class TestRmpClient(unittest.TestCase):
    def _session(self, payload) -> mock.Mock:
        session = mock.Mock()
        resp = mock.Mock()
        resp.raise_for_status.return_value = None
        resp.json.return_value = payload
        session.post.return_value = resp
        return session

    def test_search_returns_nodes(self) -> None:
        payload = {"data": {"autocomplete": {"teachers": {"edges": [{"node": node("R1", "Grace", "Hopper")}]}}}}
        session = self._session(payload)
        nodes = RmpClient(session=session).search("Grace Hopper")

        self.assertEqual([n["id"] for n in nodes], ["R1"])
        kwargs = session.post.call_args.kwargs
        self.assertEqual(kwargs["json"]["variables"], {"query": "Grace Hopper"})
        self.assertIn("Authorization", kwargs["headers"])

    def test_search_network_error(self) -> None:
        session = mock.Mock()
        session.post.side_effect = requests.ConnectionError("down")
        self.assertIsNone(RmpClient(session=session).search("Grace Hopper"))

    def test_search_bad_payload(self) -> None:
        self.assertIsNone(RmpClient(session=self._session({"errors": ["nope"]})).search("Grace Hopper"))

    def test_report(self) -> None:
        payload = {
            "data": {
                "node": {
                    "avgRating": 4.5,
                    "avgDifficultyRounded": 3.1,
                    "wouldTakeAgainPercent": 87.5,
                    "numRatings": 2,
                    "teacherRatingTags": [{"tagName": "Caring"}, {"tagName": ""}],
                    "firstName": "Grace",
                    "lastName": "Hopper",
                    "ratings": {
                        "edges": [
                            {
                                "node": {
                                    "id": "RT1",
                                    "class": "CSE1010",
                                    "comment": "Great",
                                    "date": "2021-10-01",
                                    "difficultyRating": 3,
                                    "helpfulRating": 5,
                                    "clarityRating": 5,
                                    "thumbsUpTotal": 2,
                                    "thumbsDownTotal": 0,
                                    "wouldTakeAgain": 1,
                                    "attendanceMandatory": "non mandatory",
                                    "grade": "A",
                                    "isForCredit": True,
                                    "isForOnlineClass": False,
                                    "ratingTags": "Caring--Clear grading criteria",
                                }
                            }
                        ]
                    },
                }
            }
        }
        report = RmpClient(session=self._session(payload)).report("T1")
        assert report is not None

        self.assertEqual(report.name, "Grace Hopper")
        self.assertEqual(report.average, 4.5)
        self.assertEqual(report.ratings, 2)
        self.assertEqual(report.take_again, 87.5)
        self.assertEqual(report.difficulty, 3.1)
        self.assertEqual(report.tags, ["Caring"])
        self.assertEqual(len(report.reviews), 1)
        self.assertEqual(report.reviews[0].course, "CSE1010")
        self.assertEqual(report.reviews[0].tags, ["Caring", "Clear grading criteria"])

    def test_report_no_take_again_data(self) -> None:
        payload = {"data": {"node": {"avgRating": 0, "wouldTakeAgainPercent": -1, "numRatings": 0}}}
        report = RmpClient(session=self._session(payload)).report("T1")
        assert report is not None
        self.assertIsNone(report.take_again)
        self.assertEqual(report.reviews, [])

    def test_report_unknown_id(self) -> None:
        self.assertIsNone(RmpClient(session=self._session({"data": {"node": None}})).report("T1"))


if __name__ == "__main__":
    unittest.main()
