from conftest import create_task, login

def test_personal_task_crud(client):
    me = login(client, "me")

    t = create_task(client, me, title="  write report ", priority="high", tags=["work"], estimated_duration=30)
    assert t["title"] == "write report"
    assert t["priority"] == "high"
    assert t["status"] == "todo"
    assert t["tags"] == ["work"]
    assert t["team_id"] is None
    assert t["completed_at"] is None

    r = client.patch(
        f"/tasks/{t['id']}",
        json={"description": "quarterly", "actual_duration": 45},
        headers=me.headers,
    )
    assert r.status_code == 200
    assert r.json()["description"] == "quarterly"
    assert r.json()["actual_duration"] == 45

    # null clears a clearable field
    r = client.patch(f"/tasks/{t['id']}", json={"description": None}, headers=me.headers)
    assert r.json()["description"] is None

    # creators own their personal tasks, delete included
    assert client.delete(f"/tasks/{t['id']}", headers=me.headers).status_code == 200
    assert client.get(f"/tasks/{t['id']}", headers=me.headers).status_code == 404

def test_completed_at_follows_status(client):
    me = login(client, "me")
    t = create_task(client, me, title="ship it")

    r = client.patch(f"/tasks/{t['id']}", json={"status": "completed"}, headers=me.headers)
    first = r.json()["completed_at"]
    assert first is not None

    # completing again keeps the timestamp
    r = client.patch(f"/tasks/{t['id']}", json={"status": "completed"}, headers=me.headers)
    assert r.json()["completed_at"] == first

    r = client.patch(f"/tasks/{t['id']}", json={"status": "in_progress"}, headers=me.headers)
    assert r.json()["completed_at"] is None

    done = create_task(client, me, title="born done", status="completed")
    assert done["completed_at"] is not None

def test_list_filters(client):
    me = login(client, "me")
    a = create_task(client, me, title="buy milk", priority="low", due_date="2026-01-01T00:00:00Z")
    b = create_task(client, me, title="fix bug", description="the milk parser", priority="urgent")
    c = create_task(client, me, title="review", status="in_progress", due_date="2026-03-01T00:00:00Z")

    def ids(**params):
        r = client.get("/tasks", params=params, headers=me.headers)
        assert r.status_code == 200, r.text
        return {t["id"] for t in r.json()}

    assert ids() == {a["id"], b["id"], c["id"]}
    assert ids(status="in_progress") == {c["id"]}
    assert ids(priority=["low", "urgent"]) == {a["id"], b["id"]}
    assert ids(search="milk") == {a["id"], b["id"]}
    assert ids(due_before="2026-02-01T00:00:00Z") == {a["id"]}
    assert ids(due_after="2026-02-01T00:00:00Z") == {c["id"]}
    assert len(ids(limit=2)) == 2

    r = client.get("/tasks", params={"status": "bogus"}, headers=me.headers)
    assert r.status_code == 422

def test_personal_stats(client):
    me = login(client, "me")
    create_task(client, me, title="late", due_date="2020-01-01T00:00:00Z")
    create_task(client, me, title="doing", status="in_progress")
    create_task(client, me, title="done", status="completed", due_date="2020-01-01T00:00:00Z")

    r = client.get("/tasks/stats", headers=me.headers)
    assert r.status_code == 200
    assert r.json() == {"total": 3, "completed": 1, "in_progress": 1, "todo": 1, "overdue": 1}

def test_duplicate(client):
    me = login(client, "me")
    r = client.post("/categories", json={"name": "home"}, headers=me.headers)
    category_id = r.json()["id"]

    t = create_task(
        client,
        me,
        title="water plants",
        priority="high",
        tags=["garden"],
        category_id=category_id,
        status="completed",
    )

    r = client.post(f"/tasks/{t['id']}/duplicate", headers=me.headers)
    assert r.status_code == 200
    copy = r.json()
    assert copy["id"] != t["id"]
    assert copy["title"] == "water plants (Copy)"
    assert copy["status"] == "todo"
    assert copy["completed_at"] is None
    assert copy["priority"] == "high"
    assert copy["tags"] == ["garden"]
    assert copy["category_id"] == category_id
    assert copy["assigned_to"] is None

    history = client.get(f"/tasks/{copy['id']}/history", headers=me.headers).json()
    assert history[0]["new_values"]["duplicated_from"] == t["id"]

def test_history_records_changes(client):
    me = login(client, "me")
    t = create_task(client, me, title="draft", priority="low")

    client.patch(f"/tasks/{t['id']}", json={"priority": "high", "title": "draft"}, headers=me.headers)
    # no-op update records nothing
    client.patch(f"/tasks/{t['id']}", json={"priority": "high"}, headers=me.headers)

    r = client.get(f"/tasks/{t['id']}/history", headers=me.headers)
    assert r.status_code == 200
    entries = r.json()
    assert sorted(e["change_type"] for e in entries) == ["created", "updated"]

    updated = next(e for e in entries if e["change_type"] == "updated")
    assert updated["old_values"] == {"priority": "low"}
    assert updated["new_values"] == {"priority": "high"}
    assert updated["changed_by"] == str(me.id)

def test_personal_assignee_can_work_on_task(client):
    me = login(client, "me")
    helper = login(client, "helper")
    t = create_task(client, me, title="help me", assigned_to=str(helper.id))

    assert client.get(f"/tasks/{t['id']}", headers=helper.headers).status_code == 200
    assert [x["id"] for x in client.get("/tasks", headers=helper.headers).json()] == [t["id"]]

    r = client.patch(f"/tasks/{t['id']}", json={"status": "completed"}, headers=helper.headers)
    assert r.status_code == 200

    # assignee may hand the task back but not delete it
    r = client.patch(f"/tasks/{t['id']}", json={"assigned_to": None}, headers=helper.headers)
    assert r.status_code == 200
    assert client.get(f"/tasks/{t['id']}", headers=helper.headers).status_code == 404

def test_assignee_must_exist(client):
    me = login(client, "me")
    r = client.post(
        "/tasks",
        json={"title": "x", "assigned_to": "00000000-0000-0000-0000-000000000001"},
        headers=me.headers,
    )
    assert r.status_code == 400

def test_delete_detaches_subtasks(client):
    me = login(client, "me")
    parent = create_task(client, me, title="epic")
    child = create_task(client, me, title="story", parent_task_id=parent["id"])
    assert child["parent_task_id"] == parent["id"]

    client.post(f"/tasks/{parent['id']}/comments", json={"content": "note"}, headers=me.headers)
    assert client.delete(f"/tasks/{parent['id']}", headers=me.headers).status_code == 200

    r = client.get(f"/tasks/{child['id']}", headers=me.headers)
    assert r.status_code == 200
    assert r.json()["parent_task_id"] is None

def test_subtask_must_share_scope(client, seeded_team):
    s = seeded_team
    parent = create_task(client, s.owner, title="personal")
    r = client.post(
        "/tasks",
        json={"title": "child", "team_id": s.team_id, "parent_task_id": parent["id"]},
        headers=s.owner.headers,
    )
    assert r.status_code == 400

def test_team_member_task_delete_needs_elevation(client, seeded_team):
    s = seeded_team
    t = create_task(client, s.owner, title="owner task", team_id=s.team_id, assigned_to=str(s.member.id))

    # assignee can read and edit but has no delete permission
    r = client.delete(f"/tasks/{t['id']}", headers=s.member.headers)
    assert r.status_code == 403
    assert r.json()["detail"] == "Access Denied"

    assert client.delete(f"/tasks/{t['id']}", headers=s.admin.headers).status_code == 200
