"""
Both adapters share one store: what the reviewer posts over HTTP is what
the agent sees through the tools, and vice versa.
"""

import json


def tool_payload(adapter, name, arguments):
    result = adapter.call_tool(name, arguments)
    assert result.is_error is None, result.text
    return json.loads(result.text)


def test_http_annotation_visible_to_agent(client, adapter):
    session = client.post("/sessions", json={"url": "http://localhost:5173/"}).json()
    created = client.post(f"/sessions/{session['id']}/annotations", json={
        "comment": "Logo is blurry",
        "element": "img",
        "elementPath": "header > img.logo",
        "severity": "suggestion",
    }).json()

    pending = tool_payload(adapter, "agentation_get_pending", {"sessionId": session["id"]})
    assert pending["count"] == 1
    assert pending["annotations"][0]["id"] == created["id"]
    assert pending["annotations"][0]["severity"] == "suggestion"


def test_agent_resolution_visible_to_reviewer(client, adapter):
    session = client.post("/sessions", json={"url": "http://localhost:5173/"}).json()
    created = client.post(f"/sessions/{session['id']}/annotations", json={
        "comment": "Logo is blurry",
        "element": "img",
        "elementPath": "header > img.logo",
    }).json()

    tool_payload(adapter, "agentation_resolve", {"annotationId": created["id"], "summary": "done"})

    annotation = client.get(f"/annotations/{created['id']}").json()
    assert annotation["status"] == "resolved"
    assert annotation["resolvedBy"] == "agent"
    assert len(annotation["thread"]) == 1
    assert annotation["thread"][0]["role"] == "agent"
    assert annotation["thread"][0]["content"] == "Resolved: done"

    pending = tool_payload(adapter, "agentation_get_pending", {"sessionId": session["id"]})
    assert pending == {"count": 0, "annotations": []}


def test_reviewer_reopen_after_agent_dismiss(client, adapter):
    session = client.post("/sessions", json={"url": "http://localhost:5173/"}).json()
    created = client.post(f"/sessions/{session['id']}/annotations", json={
        "comment": "Wrong color",
        "element": "a",
        "elementPath": "nav > a",
    }).json()

    tool_payload(adapter, "agentation_dismiss", {"annotationId": created["id"], "reason": "matches brand guide"})
    reopened = client.patch(f"/annotations/{created['id']}", json={"status": "pending"}).json()
    assert reopened["status"] == "pending"

    sessions = tool_payload(adapter, "agentation_list_sessions", {})["sessions"]
    assert [s["id"] for s in sessions] == [session["id"]]
    pending = tool_payload(adapter, "agentation_get_pending", {"sessionId": session["id"]})
    assert pending["count"] == 1
