# tests/test_permissions_sweep.py

import uuid

from conftest import create_task, create_team, invite, login
from taskflow.models.enums import Role
from taskflow.models.team_member import TeamMember

def member_roles(client, who, team_id: str) -> dict[str, str]:
    r = client.get(f"/teams/{team_id}/members", headers=who.headers)
    assert r.status_code == 200, r.text
    return {m["user_id"]: m["role"] for m in r.json()}

def test_invite_hierarchy(client, seeded_team):
    s = seeded_team
    newcomer = login(client, "newcomer")
    newcomer2 = login(client, "newcomer2")

    # role escalation: admin cannot mint admin/owner
    assert invite(client, s.admin, s.team_id, newcomer, "admin").status_code == 403
    assert invite(client, s.admin, s.team_id, newcomer, "owner").status_code == 403

    # owner cannot mint another owner by invite either
    assert invite(client, s.owner, s.team_id, newcomer, "owner").status_code == 403

    # members cannot invite at all
    r = invite(client, s.member, s.team_id, newcomer, "member")
    assert r.status_code == 403
    assert r.json()["detail"] == "Access Denied"

    # admin can invite a member
    r = invite(client, s.admin, s.team_id, newcomer, "member")
    assert r.status_code == 200, r.text
    assert r.json()["role"] == "member"

    # re-inviting returns the existing membership unchanged
    r = invite(client, s.owner, s.team_id, newcomer, "admin")
    assert r.status_code == 200
    assert r.json()["role"] == "member"

    r = invite(client, s.owner, s.team_id, newcomer2, "admin")
    assert r.status_code == 200
    assert member_roles(client, s.owner, s.team_id)[str(newcomer2.id)] == "admin"

def test_invite_unknown_email(client, seeded_team):
    s = seeded_team
    r = client.post(
        f"/teams/{s.team_id}/invites",
        json={"email": "nobody@example.com", "role": "member"},
        headers=s.owner.headers,
    )
    assert r.status_code == 404

def test_change_role_is_owner_only(client, seeded_team):
    s = seeded_team
    url = f"/teams/{s.team_id}/members/{s.member.id}"

    assert client.patch(url, json={"role": "admin"}, headers=s.admin.headers).status_code == 403
    assert client.patch(url, json={"role": "admin"}, headers=s.member.headers).status_code == 403

    r = client.patch(url, json={"role": "admin"}, headers=s.owner.headers)
    assert r.status_code == 200
    assert r.json()["role"] == "admin"

    # promoted member now has admin powers
    r = client.get(f"/teams/{s.team_id}/stats", headers=s.member.headers)
    assert r.status_code == 200

    r = client.patch(f"/teams/{s.team_id}/members/{s.owner.id}", json={"role": "member"}, headers=s.owner.headers)
    assert r.status_code == 400

def test_remove_member_rules(client, seeded_team):
    s = seeded_team
    base = f"/teams/{s.team_id}/members"

    # members cannot remove others
    assert client.delete(f"{base}/{s.member2.id}", headers=s.member.headers).status_code == 403
    # nobody removes the owner
    assert client.delete(f"{base}/{s.owner.id}", headers=s.admin.headers).status_code == 400

    t = create_task(client, s.admin, title="assigned", team_id=s.team_id, assigned_to=str(s.member2.id))

    # admin removes a member; their team assignments are cleared
    assert client.delete(f"{base}/{s.member2.id}", headers=s.admin.headers).status_code == 200
    assert str(s.member2.id) not in member_roles(client, s.owner, s.team_id)
    r = client.get(f"/tasks/{t['id']}", headers=s.owner.headers)
    assert r.json()["assigned_to"] is None

    # removed user has no team access anymore
    r = client.get(f"/teams/{s.team_id}", headers=s.member2.headers)
    assert r.status_code == 403

def test_admin_cannot_remove_admin(client, seeded_team):
    s = seeded_team
    other_admin = login(client, "admin2")
    assert invite(client, s.owner, s.team_id, other_admin, "admin").status_code == 200

    r = client.delete(f"/teams/{s.team_id}/members/{other_admin.id}", headers=s.admin.headers)
    assert r.status_code == 403
    assert r.json()["detail"] == "forbidden"

    r = client.delete(f"/teams/{s.team_id}/members/{other_admin.id}", headers=s.owner.headers)
    assert r.status_code == 200

def test_member_can_leave_owner_cannot(client, seeded_team):
    s = seeded_team
    r = client.delete(f"/teams/{s.team_id}/members/{s.member.id}", headers=s.member.headers)
    assert r.status_code == 200

    r = client.delete(f"/teams/{s.team_id}/members/{s.owner.id}", headers=s.owner.headers)
    assert r.status_code == 400

def test_team_delete_is_owner_only(client, seeded_team):
    s = seeded_team
    t = create_task(client, s.member, title="doomed", team_id=s.team_id)
    r = client.post(f"/tasks/{t['id']}/comments", json={"content": "hi"}, headers=s.member.headers)
    assert r.status_code == 200
    r = client.post("/categories", json={"name": "c", "team_id": s.team_id}, headers=s.admin.headers)
    assert r.status_code == 200

    assert client.delete(f"/teams/{s.team_id}", headers=s.admin.headers).status_code == 403
    assert client.delete(f"/teams/{s.team_id}", headers=s.member.headers).status_code == 403

    r = client.delete(f"/teams/{s.team_id}", headers=s.owner.headers)
    assert r.status_code == 200

    assert client.get(f"/teams/{s.team_id}", headers=s.owner.headers).status_code == 404
    assert client.get(f"/tasks/{t['id']}", headers=s.member.headers).status_code == 404
    assert client.get("/teams", headers=s.member.headers).json() == []

def test_team_list_shows_caller_role(client):
    a = login(client, "a")
    b = login(client, "b")
    t1 = create_team(client, a, "one")
    t2 = create_team(client, b, "two")
    assert invite(client, b, t2, a, "admin").status_code == 200

    roles = {t["id"]: t["role"] for t in client.get("/teams", headers=a.headers).json()}
    assert roles == {t1: "owner", t2: "admin"}

def test_owner_role_cannot_be_changed(client, db_session, seeded_team):
    s = seeded_team
    co_owner = login(client, "coowner")
    db_session.add(TeamMember(user_id=co_owner.id, team_id=uuid.UUID(s.team_id), role=Role.owner))
    db_session.commit()

    r = client.patch(
        f"/teams/{s.team_id}/members/{co_owner.id}",
        json={"role": "member"},
        headers=s.owner.headers,
    )
    assert r.status_code == 400
    assert member_roles(client, s.owner, s.team_id)[str(co_owner.id)] == "owner"

    # so the owner cannot be demoted and then removed
    r = client.delete(f"/teams/{s.team_id}/members/{co_owner.id}", headers=s.owner.headers)
    assert r.status_code == 400
