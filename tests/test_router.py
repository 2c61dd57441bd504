"""Tests for cyro.routing.router — ordered route table."""

import logging

import pytest

from cyro.errors import ConfigurationError, RouteRegistrationError
from cyro.http.methods import HTTPMethod
from cyro.routing.route import SegmentKind
from cyro.routing.router import RouteTable, match_segments, parse_path


def _handler(request, response, context) -> None:
    response.send("ok")


def _other(request, response, context) -> None:
    response.send("other")


class TestParsePath:
    def test_root_is_single_empty_literal(self) -> None:
        segments = parse_path("/")
        assert len(segments) == 1
        assert segments[0].kind is SegmentKind.LITERAL
        assert segments[0].value == ""

    def test_literals(self) -> None:
        segments = parse_path("/api/v2/users")
        assert [s.value for s in segments] == ["api", "v2", "users"]
        assert all(s.kind is SegmentKind.LITERAL for s in segments)

    def test_param(self) -> None:
        segments = parse_path("/users/:id")
        assert segments[1].kind is SegmentKind.PARAM
        assert segments[1].name == "id"

    def test_trailing_slash_adds_empty_literal(self) -> None:
        segments = parse_path("/users/")
        assert [s.value for s in segments] == ["users", ""]

    def test_named_wildcard(self) -> None:
        segments = parse_path("/static/*rest")
        assert segments[-1].kind is SegmentKind.WILDCARD
        assert segments[-1].name == "rest"

    def test_bare_wildcard_has_no_name(self) -> None:
        assert parse_path("/static/*")[-1].name is None

    def test_wildcard_must_be_last(self) -> None:
        with pytest.raises(RouteRegistrationError, match="last segment"):
            parse_path("/static/*/x")

    def test_empty_interior_segment_rejected(self) -> None:
        with pytest.raises(RouteRegistrationError, match="Empty path segment"):
            parse_path("/a//b")

    def test_duplicate_param_rejected(self) -> None:
        with pytest.raises(RouteRegistrationError, match="Duplicate"):
            parse_path("/a/:id/b/:id")

    def test_invalid_param_name_rejected(self) -> None:
        with pytest.raises(RouteRegistrationError, match="Invalid parameter name"):
            parse_path("/a/:")

    def test_must_start_with_slash(self) -> None:
        with pytest.raises(RouteRegistrationError):
            parse_path("users")


class TestMatchSegments:
    def test_exact_literal(self) -> None:
        assert match_segments(parse_path("/users"), "/users") == {}

    def test_literal_mismatch(self) -> None:
        assert match_segments(parse_path("/users"), "/posts") is None

    def test_trailing_slash_is_significant(self) -> None:
        assert match_segments(parse_path("/users"), "/users/") is None
        assert match_segments(parse_path("/users/"), "/users") is None
        assert match_segments(parse_path("/users/"), "/users/") == {}

    def test_root_matches_only_root(self) -> None:
        assert match_segments(parse_path("/"), "/") == {}
        assert match_segments(parse_path("/"), "/users") is None

    def test_param_does_not_match_empty_segment(self) -> None:
        assert match_segments(parse_path("/users/:id"), "/users/") is None

    def test_param_is_percent_decoded(self) -> None:
        params = match_segments(parse_path("/files/:name"), "/files/a%20b")
        assert params == {"name": "a b"}

    def test_wildcard_matches_suffix(self) -> None:
        params = match_segments(parse_path("/static/*rest"), "/static/css/site.css")
        assert params == {"rest": "css/site.css"}

    def test_wildcard_matches_empty_suffix(self) -> None:
        assert match_segments(parse_path("/static/*rest"), "/static/") == {"rest": ""}

    def test_wildcard_needs_separator(self) -> None:
        assert match_segments(parse_path("/static/*"), "/static") is None

    def test_bare_wildcard_captures_nothing(self) -> None:
        assert match_segments(parse_path("/static/*"), "/static/a/b") == {}

    def test_extra_segments_do_not_match(self) -> None:
        assert match_segments(parse_path("/users/:id"), "/users/1/posts") is None


class TestRegistration:
    def test_register_returns_route(self) -> None:
        table = RouteTable()
        route = table.get("/users/:id", _handler)
        assert route is not None
        assert route.method is HTTPMethod.GET
        assert route.param_names == ("id",)

    def test_method_is_case_insensitive(self) -> None:
        table = RouteTable()
        route = table.register("post", "/items", _handler)
        assert route is not None
        assert route.method is HTTPMethod.POST

    def test_unsupported_method_is_logged_and_omitted(self, caplog: pytest.LogCaptureFixture) -> None:
        table = RouteTable()
        with caplog.at_level(logging.ERROR, logger="cyro.routing"):
            assert table.register("TRACE", "/x", _handler) is None
        assert len(table) == 0
        assert "Failed to add route [TRACE /x]" in caplog.text

    def test_bad_path_is_logged_and_omitted(self, caplog: pytest.LogCaptureFixture) -> None:
        table = RouteTable()
        with caplog.at_level(logging.ERROR, logger="cyro.routing"):
            assert table.get("no-slash", _handler) is None
            assert table.get("", _handler) is None
        assert len(table) == 0

    def test_non_callable_handler_rejected(self) -> None:
        table = RouteTable()
        assert table.get("/x", "not a function") is None
        assert len(table) == 0

    def test_fault_leaves_prior_routes_intact(self) -> None:
        table = RouteTable()
        table.get("/a", _handler)
        table.get("/b//c", _handler)
        assert [r.path for r in table.routes] == ["/a"]

    def test_strict_raises(self) -> None:
        table = RouteTable(strict=True)
        with pytest.raises(RouteRegistrationError) as exc_info:
            table.register("GET", "/a//b", _handler)
        assert exc_info.value.method == HTTPMethod.GET
        assert exc_info.value.path == "/a//b"

    def test_freeze_rejects_registration(self) -> None:
        table = RouteTable()
        table.freeze()
        with pytest.raises(RuntimeError):
            table.get("/x", _handler)

    def test_convenience_wrappers(self) -> None:
        table = RouteTable()
        table.get("/r", _handler)
        table.post("/r", _handler)
        table.put("/r", _handler)
        table.delete("/r", _handler)
        table.patch("/r", _handler)
        table.head("/r", _handler)
        table.options("/r", _handler)
        assert [str(r.method) for r in table.routes] == [
            "GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS",
        ]


class TestResolve:
    def test_param_extraction(self) -> None:
        table = RouteTable()
        table.get("/users/:id", _handler)
        match = table.resolve("GET", "/users/42")
        assert match is not None
        assert match.params == {"id": "42"}
        assert match.route.handler is _handler

    def test_first_registered_wins(self) -> None:
        table = RouteTable()
        table.get("/users/:id", _handler)
        table.get("/users/:name", _other)
        match = table.resolve("GET", "/users/7")
        assert match is not None
        assert match.route.handler is _handler

    def test_literal_registered_first_shadows_param(self) -> None:
        table = RouteTable()
        table.get("/users/new", _other)
        table.get("/users/:id", _handler)
        match = table.resolve("GET", "/users/new")
        assert match is not None
        assert match.route.handler is _other
        assert match.params == {}

    def test_param_registered_first_shadows_literal(self) -> None:
        table = RouteTable()
        table.get("/users/:id", _handler)
        table.get("/users/new", _other)
        match = table.resolve("GET", "/users/new")
        assert match is not None
        assert match.route.handler is _handler

    def test_methods_are_separate(self) -> None:
        table = RouteTable()
        table.post("/users", _handler)
        assert table.resolve("GET", "/users") is None
        assert table.resolve("POST", "/users") is not None

    def test_no_match(self) -> None:
        table = RouteTable()
        table.get("/users", _handler)
        assert table.resolve("GET", "/missing") is None

    def test_unknown_method_raises(self) -> None:
        table = RouteTable()
        table.get("/x", _handler)
        with pytest.raises(ConfigurationError, match="TRACE"):
            table.resolve("TRACE", "/x")

    def test_unknown_method_routes_for_raises(self) -> None:
        with pytest.raises(ConfigurationError):
            RouteTable().routes_for("CONNECT")

    def test_known_method_without_routes(self) -> None:
        table = RouteTable()
        assert table.resolve("DELETE", "/x") is None
        assert table.routes_for("delete") == ()


class TestExists:
    def test_known_methods(self) -> None:
        table = RouteTable()
        for method in HTTPMethod:
            assert table.exists(method)
        assert table.exists("get")

    def test_unknown_method(self) -> None:
        assert not RouteTable().exists("TRACE")
        assert not RouteTable().exists(None)
