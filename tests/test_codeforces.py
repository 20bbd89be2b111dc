import unittest
from datetime import datetime, timezone

import aiohttp

from models.problem import ProblemId
from services.charts import build_rating_chart_config
from services.codeforces import CodeforcesClient
from services.errors import CodeforcesError, CodeforcesNotFoundError, ExternalFetchError


class FakeResponse:
    def __init__(self, payload):
        self.payload = payload

    async def __aenter__(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self

    async def __aexit__(self, *exc):
        return False

    async def json(self, content_type="application/json"):
        return self.payload


class FakeHttpSession:
    """Stands in for aiohttp.ClientSession; replies with canned payloads."""

    def __init__(self, *payloads):
        self.payloads = list(payloads)
        self.requests = []
        self.closed = False

    def get(self, url, params=None):
        self.requests.append((url, params))
        return FakeResponse(self.payloads.pop(0))

    async def close(self):
        self.closed = True


def ok(result):
    return {"status": "OK", "result": result}


def failed(comment):
    return {"status": "FAILED", "comment": comment}


class CodeforcesClientTests(unittest.IsolatedAsyncioTestCase):
    def make_client(self, *payloads):
        client = CodeforcesClient(base_url="https://cf.test/api/", min_interval=0)
        client._session = FakeHttpSession(*payloads)
        return client

    async def test_user_info_joins_handles(self):
        client = self.make_client(ok([{"handle": "tourist"}, {"handle": "Petr"}]))

        users = await client.fetch_user_info(["tourist", "petr"])

        self.assertEqual([u["handle"] for u in users], ["tourist", "Petr"])
        url, params = client._session.requests[0]
        self.assertEqual(url, "https://cf.test/api/user.info")
        self.assertEqual(params, {"handles": "tourist;petr"})

    async def test_unknown_handle_is_not_found(self):
        client = self.make_client(failed("handles: User with handle nobody not found"))
        with self.assertRaises(CodeforcesNotFoundError) as ctx:
            await client.fetch_user_info(["nobody"])
        self.assertEqual(ctx.exception.method, "user.info")

    async def test_other_api_failures(self):
        client = self.make_client(failed("Call limit exceeded"))
        with self.assertRaises(CodeforcesError) as ctx:
            await client.fetch_user_rating("tourist")
        self.assertNotIsInstance(ctx.exception, CodeforcesNotFoundError)
        self.assertEqual(ctx.exception.code, "EXTERNAL_FETCH_FAILURE")

    async def test_network_errors_become_fetch_errors(self):
        client = self.make_client(aiohttp.ClientConnectionError("connection reset"))
        with self.assertRaises(ExternalFetchError) as ctx:
            await client.fetch_recent_submissions("tourist")
        self.assertNotIsInstance(ctx.exception, CodeforcesError)

    async def test_unexpected_payload(self):
        client = self.make_client(["not", "a", "dict"])
        with self.assertRaises(ExternalFetchError):
            await client.fetch_problemset()

    async def test_recent_submissions_skip_unparsable_entries(self):
        client = self.make_client(ok([
            {"problem": {"contestId": 1500, "index": "A"}, "verdict": "OK", "creationTimeSeconds": 1709294400},
            {"problem": {"index": "A"}, "verdict": "OK", "creationTimeSeconds": 1709294400},
            {"problem": {"contestId": 1500, "index": "B"}, "creationTimeSeconds": 1709294460},
        ]))

        submissions = await client.fetch_recent_submissions("alice", count=3)

        self.assertEqual(len(submissions), 2)
        self.assertEqual(submissions[0].problem_id, ProblemId(1500, "A"))
        self.assertTrue(submissions[0].accepted)
        self.assertEqual(submissions[0].submitted_at, datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc))
        self.assertEqual(submissions[1].verdict, "TESTING")
        self.assertEqual(client._session.requests[0][1], {"handle": "alice", "from": "1", "count": "3"})

    async def test_user_rating_pairs(self):
        client = self.make_client(ok([
            {"ratingUpdateTimeSeconds": 1709294400, "newRating": 1500},
            {"ratingUpdateTimeSeconds": 1709380800, "newRating": 1620},
        ]))
        history = await client.fetch_user_rating("alice")
        self.assertEqual([rating for _, rating in history], [1500, 1620])

    async def test_contest_problems(self):
        client = self.make_client(ok({
            "contest": {"id": 1500, "name": "Round #1"},
            "problems": [{"contestId": 1500, "index": "A", "name": "Sum"}],
        }))

        contest, problems = await client.fetch_contest_problems(1500)

        self.assertEqual(contest["name"], "Round #1")
        self.assertEqual(problems[0]["name"], "Sum")
        self.assertEqual(client._session.requests[0][1], {"contestId": "1500", "from": "1", "count": "1"})

    async def test_problemset_keeps_rated_problems_only(self):
        client = self.make_client(ok({"problems": [
            {"contestId": 1, "index": "A", "name": "Rated", "rating": 800},
            {"contestId": 1, "index": "B", "name": "Unrated"},
            {"index": "C", "name": "No contest", "rating": 800},
        ]}))

        problems = await client.fetch_problemset()

        self.assertEqual([p.name for p in problems], ["Rated"])
        self.assertEqual(problems[0].rating, 800)

    async def test_close_closes_the_session(self):
        client = self.make_client()
        session = client._session
        await client.close()
        self.assertTrue(session.closed)
        self.assertIsNone(client._session)


class RatingChartTests(unittest.TestCase):
    def test_chart_config(self):
        history = [
            (datetime(2024, 1, 5, tzinfo=timezone.utc), 1400),
            (datetime(2024, 2, 9, tzinfo=timezone.utc), 1510),
        ]
        config = build_rating_chart_config("alice", history, color_index=1)

        self.assertEqual(config["type"], "line")
        self.assertEqual(config["data"]["labels"], ["2024-01-05", "2024-02-09"])
        dataset = config["data"]["datasets"][0]
        self.assertEqual(dataset["label"], "alice")
        self.assertEqual(dataset["data"], [1400, 1510])
        self.assertEqual(dataset["borderColor"], "rgba(255, 99, 132, 1.0)")


if __name__ == "__main__":
    unittest.main()
