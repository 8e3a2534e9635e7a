from unittest.mock import patch

import pytest
import requests

from schoolnet.client import ASSESSMENT_FILTER, SchoolnetClient
from schoolnet.config import SchoolnetConfig
from schoolnet.errors import AuthenticationError

from conftest import CONFIG, make_response, token_response


def page(n, start=0):
    return make_response({"data": [{"id": str(i), "links": [], "institutionType": "School"} for i in range(start, start + n)]})


def get_params(session):
    return [c.kwargs["params"] for c in session.get.call_args_list]


def test_urls_resolved_from_base(client):
    assert client.base_url == "https://district.example.com/api/v1/"
    assert client.token_url == "https://district.example.com/api/oauth/token"
    assert client.url("districts") == "https://district.example.com/api/v1/districts"


def test_config_aliases():
    api = SchoolnetClient({"client_id": "a", "client_secret": "b", "url": "https://x.example.com"}, session=None)
    assert api.config.client_id == "a"
    assert api.base_url == "https://x.example.com/api/v1/"


def test_keyword_options_override_config(session):
    api = SchoolnetClient(SchoolnetConfig.from_mapping(CONFIG), session=session, baseURL="https://other.example.com")
    assert api.base_url == "https://other.example.com/api/v1/"


def test_auto_pagination(client, session):
    session.get.side_effect = [page(500), page(500, 500), page(10, 1000)]
    result = client.get_districts()

    assert len(result) == 1010
    assert [p["offset"] for p in get_params(session)] == [0, 500, 1000]
    assert all(p["limit"] == 500 for p in get_params(session))
    assert result[-1]["id"] == "1009"


def test_exactly_full_last_page_costs_one_more_request(client, session):
    session.get.side_effect = [page(500), make_response({"data": []})]
    assert len(client.api_get("districts")) == 500
    assert session.get.call_count == 2


def test_explicit_limit_returns_single_page(client, session):
    session.get.return_value = page(25)
    result = client.api_get("districts", limit=25)
    assert len(result) == 25
    assert get_params(session) == [{"limit": 25, "offset": 0}]


def test_explicit_offset_returns_single_page(client, session):
    session.get.return_value = page(500)
    client.api_get("districts", offset=0)
    assert session.get.call_count == 1


def test_explicit_limit_with_recursive(client, session):
    session.get.side_effect = [page(2), page(2, 2), page(1, 4)]
    result = client.api_get("districts", limit=2, offset=0, recursive=True)
    assert len(result) == 5
    assert [p["offset"] for p in get_params(session)] == [0, 2, 4]


def test_bearer_token_sent(client, session):
    session.get.return_value = page(1)
    client.get_districts()
    assert session.get.call_args.kwargs["headers"] == {"Authorization": "Bearer tok-1"}
    assert session.post.call_count == 1


def test_token_reused_across_pages(client, session):
    session.get.side_effect = [page(500), page(3)]
    client.get_districts()
    assert session.post.call_count == 1


def test_omissions_stripped_from_single_object(client, session):
    session.get.return_value = make_response({"data": {"id": "9", "name": "North", "links": [{}], "institutionType": "School"}})
    assert client.get_school("9") == {"id": "9", "name": "North"}


def test_omissions_stripped_from_list(client, session):
    session.get.return_value = page(3)
    for obj in client.get_districts():
        assert "links" not in obj
        assert "institutionType" not in obj


def test_timeout_twice_then_success(client, session, sleeps):
    session.get.side_effect = [
        requests.exceptions.ConnectTimeout("slow"),
        requests.exceptions.ReadTimeout("slow"),
        page(3),
    ]
    assert len(client.get_districts()) == 3
    assert session.get.call_count == 3
    assert sleeps == [300, 60]


def test_http_error_not_retried(client, session, sleeps):
    session.get.return_value = make_response({"message": "nope"}, status=404)
    with pytest.raises(requests.exceptions.HTTPError):
        client.get_school("missing")
    assert session.get.call_count == 1
    assert sleeps == []


def test_resource_paths(client, session):
    session.get.return_value = make_response({"data": []})
    client.get_schools({"institutionId": "d1"})
    client.get_sections({"id": "s1"})
    client.get_staff_sections({"teacher": "t1"})
    urls = [c.args[0] for c in session.get.call_args_list]
    assert urls == [
        "https://district.example.com/api/v1/districts/d1/schools",
        "https://district.example.com/api/v1/schools/s1/sections",
        "https://district.example.com/api/v1/staff/t1/staffSectionAssignments",
    ]


def test_expansions(client, session):
    session.get.return_value = make_response({"data": {}})
    client.get_section({"sectionId": "x"})
    client.get_assessment({"instanceId": "a1"})
    client.get_staff({"staffId": "st1"})
    client.get_students("x", query={"expand": "other", "active": "true"})
    expands = [p["expand"] for p in get_params(session)]
    assert expands == [
        "assessmentassignment,course,schedule",
        "assessmentquestion,assessmentschedule",
        "identifier",
        "identifier",
    ]
    assert get_params(session)[-1]["active"] == "true"


def test_get_assessments_filters(client, session):
    session.get.return_value = make_response({"data": [{"instanceId": "1"}, {"id": "2"}]})
    assert client.get_assessments() == [{"instanceId": "1"}]
    assert get_params(session)[0]["filter"] == ASSESSMENT_FILTER


def test_get_assessments_modified_since(client, session):
    session.get.return_value = make_response({"data": []})
    client.get_assessments(modified_since="2017-03-01", limit=50)
    params = get_params(session)[0]
    assert params["filter"] == "modifiedsince==03-01-2017;" + ASSESSMENT_FILTER
    assert params["limit"] == 50


def test_put_student_assessment_without_id(client, session):
    assert client.put_student_assessment({}) == {"success": False}
    assert client.put_student_assessment(None) == {"success": False}
    assert session.put.call_count == 0
    assert session.post.call_count == 0


def test_put_student_assessment_success(client, session):
    session.put.return_value = make_response({"data": {"links": []}})
    obj = {"assessmentId": "a1", "studentId": "s1", "score": 4}
    assert client.put_student_assessment(obj) == {"success": True, **obj}
    args, kwargs = session.put.call_args
    assert args[0] == "https://district.example.com/api/v1/assessments/a1/studentAssessments"
    assert kwargs["json"] == obj


def test_put_failure_returns_result(client, session, sleeps):
    session.put.return_value = make_response({"message": "bad"}, status=400)
    result = client.put_student_assessment({"assessmentId": "a1"})
    assert result["success"] is False
    assert result["assessmentId"] == "a1"
    assert result["status_code"] == 400
    assert session.put.call_count == 1


def test_put_not_retried(client, session, sleeps):
    session.put.side_effect = requests.exceptions.ReadTimeout("slow")
    result = client.put_student_assessment({"assessmentId": "a1"})
    assert result["success"] is False
    assert session.put.call_count == 1
    assert sleeps == []


def test_api_put_trims_response(client, session):
    session.put.return_value = make_response({"data": [{"id": "1", "links": []}]})
    assert client.api_put("assessments/a1/studentAssessments", {"x": 1}) == [{"id": "1"}]


def test_get_tenants_single_request(client, session):
    session.get.return_value = page(500)
    assert len(client.get_tenants()) == 500
    assert session.get.call_count == 1
    assert "limit" not in session.get.call_args.kwargs["params"]


def test_token_failure_rejects_reads(client, session):
    session.post.return_value = make_response({"error": "invalid_client"}, status=401)
    with pytest.raises(AuthenticationError):
        client.get_districts()
    assert session.get.call_count == 0


def test_token_refreshed_after_expiry(client, session):
    session.post.side_effect = [token_response("one"), token_response("two")]
    session.get.return_value = page(1)
    client.get_districts()
    client.tokens.expires = 0
    client.get_districts()
    assert session.get.call_args.kwargs["headers"]["Authorization"] == "Bearer two"


@pytest.mark.parametrize("value", ["03-01-2017", "2017/03/01", 1488369600000])
def test_get_assessments_modified_since_formats(client, session, value):
    session.get.return_value = make_response({"data": []})
    client.get_assessments(modified_since=value)
    assert get_params(session)[0]["filter"].startswith("modifiedsince==03-01-2017;")


def test_caller_session_left_alone(session):
    api = SchoolnetClient(CONFIG, session=session)
    api.close()
    session.headers.update.assert_not_called()
    session.close.assert_not_called()


def test_own_session_closed():
    api = SchoolnetClient(CONFIG)
    assert api.session.headers["User-Agent"].startswith("schoolnet-python")
    with patch.object(api.session, "close") as close:
        with api:
            pass
    close.assert_called_once_with()
