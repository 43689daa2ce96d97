from datetime import datetime, timedelta

import pytest

from cleanops.client import ApiError, OperationsClient
from cleanops.domain.scheduling.draft import DraftInvalid, JobDraft
from cleanops.events import JobsChanged
from cleanops.models import Job, JobEvent
from cleanops.shared.timeutils import parse_instant

from .conftest import MONDAY


@pytest.fixture
def setup(make_customer, make_employee, make_plan):
    customer = make_customer()
    sam = make_employee("Sam")
    alex = make_employee("Alex")
    plan = make_plan()
    return customer, sam, alex, plan


def job_body(customer, plan, employees, **overrides):
    body = {
        "customerId": customer.id,
        "planId": plan.id,
        "location": "1 High Street",
        "scheduledFor": "2030-03-04T10:00:00Z",
        "assignments": [{"employeeId": e.id} for e in employees],
    }
    body.update(overrides)
    return body


class TestCreateJob:
    def test_creates_scheduled_job_with_plan_duration(self, client, setup, event_bus):
        customer, sam, _, plan = setup
        changes = []
        event_bus.subscribe(JobsChanged, changes.append)

        response = client.post("/jobs", json=job_body(customer, plan, [sam]))

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "scheduled"
        assert data["durationMinutes"] == 120
        assert data["estimatedPrice"] == 80
        assert data["assignedEmployeeIds"] == [sam.id]
        assert data["customerName"] == "Dana Reyes"
        assert parse_instant(data["scheduledFor"]) == parse_instant("2030-03-04T10:00:00Z")
        assert changes == [JobsChanged(job_ids=(data["id"],), reason="created")]

    def test_required_fields(self, client, setup):
        customer, _, _, plan = setup
        response = client.post("/jobs", json=job_body(customer, plan, []))
        assert response.status_code == 400
        assert response.json() == {"error": "Plan, client address, and assigned staff are required"}

    def test_duplicate_needs_confirmation(self, client, setup):
        customer, sam, alex, plan = setup
        assert client.post("/jobs", json=job_body(customer, plan, [sam])).status_code == 201

        near = job_body(customer, plan, [alex], scheduledFor="2030-03-04T10:03:00Z")
        response = client.post("/jobs", json=near)
        assert response.status_code == 409
        assert response.json()["code"] == "duplicate_job"
        assert response.json()["override"] == "allowDuplicate"

        near["allowDuplicate"] = True
        assert client.post("/jobs", json=near).status_code == 201

    def test_past_date_needs_confirmation(self, client, setup):
        customer, sam, _, plan = setup
        body = job_body(customer, plan, [sam], scheduledFor="2020-01-06T09:00:00Z")

        response = client.post("/jobs", json=body)
        assert response.status_code == 409
        assert response.json()["code"] == "past_date"

        body["allowPast"] = True
        assert client.post("/jobs", json=body).json()["status"] == "scheduled"

    def test_back_create_complete(self, client, setup):
        customer, sam, _, plan = setup
        body = job_body(customer, plan, [sam], scheduledFor="2020-01-06T09:00:00Z", backCreateComplete=True)

        data = client.post("/jobs", json=body).json()

        assert data["status"] == "completed"
        assert parse_instant(data["completedAt"]) == parse_instant("2020-01-06T11:00:00Z")

    def test_per_job_employee_needs_pay_amount(self, client, setup, make_employee):
        customer, _, _, plan = setup
        contractor = make_employee("Jo", pay_type="per_job", hourly_rate=None)

        response = client.post("/jobs", json=job_body(customer, plan, [contractor]))
        assert response.status_code == 409
        assert response.json()["code"] == "pay_amount_required"

        too_much = job_body(customer, plan, [], assignments=[{"employeeId": contractor.id, "payAmount": 500}])
        response = client.post("/jobs", json=too_much)
        assert response.status_code == 400
        assert response.json()["error"] == "Pay amount cannot exceed the plan price"

    def test_unknown_employee(self, client, setup):
        customer, _, _, plan = setup
        body = job_body(customer, plan, [], assignments=[{"employeeId": 999}])
        assert client.post("/jobs", json=body).status_code == 404


class TestJobWindowReads:
    def test_window_and_status_filters(self, client, setup, make_job):
        customer, sam, _, _ = setup
        monday = make_job(employees=[sam], customer=customer)
        make_job(scheduled_for=MONDAY + timedelta(days=2, hours=9), employees=[sam])
        cancelled = make_job(scheduled_for=MONDAY.replace(hour=15), status="cancelled")

        params = {"startDate": "2030-03-04T00:00:00Z", "endDate": "2030-03-04T23:59:59Z"}
        ids = [j["id"] for j in client.get("/jobs", params=params).json()]
        assert ids == [monday.id, cancelled.id]

        params["status"] = "scheduled,in-progress"
        assert [j["id"] for j in client.get("/jobs", params=params).json()] == [monday.id]

        params = {"customerId": customer.id}
        assert [j["id"] for j in client.get("/jobs", params=params).json()] == [monday.id]

    def test_invalid_instant(self, client):
        response = client.get("/jobs", params={"startDate": "yesterday"})
        assert response.status_code == 400
        assert "startDate" in response.json()["error"]

    def test_missing_job(self, client):
        response = client.get("/jobs/404")
        assert response.status_code == 404
        assert response.json() == {"error": "Job not found"}


class TestAvailabilityEndpoint:
    def test_overlap_touching_and_exclusion(self, client, setup, make_job):
        _, sam, alex, _ = setup
        job = make_job(employees=[sam])

        busy = client.get("/scheduling/availability", params={"start": "2030-03-04T10:30:00Z", "durationMinutes": 60})
        assert busy.status_code == 200
        assert busy.json()["statuses"] == {str(sam.id): "busy", str(alex.id): "available"}
        assert busy.json()["busyEmployeeIds"] == [sam.id]
        assert parse_instant(busy.json()["lookupStart"]) == parse_instant("2030-03-04T09:30:00Z")

        touching = client.get("/scheduling/availability", params={"start": "2030-03-04T11:00:00Z"})
        assert touching.json()["statuses"][str(sam.id)] == "available"

        excluded = client.get(
            "/scheduling/availability", params={"start": "2030-03-04T10:30:00Z", "excludeJobId": job.id}
        )
        assert excluded.json()["busyEmployeeIds"] == []

    def test_completed_jobs_do_not_block(self, client, setup, make_job):
        _, sam, _, _ = setup
        make_job(employees=[sam], status="completed")
        response = client.get("/scheduling/availability", params={"start": "2030-03-04T10:00:00Z"})
        assert response.json()["busyEmployeeIds"] == []


class TestCalendarEndpoint:
    def test_groups_and_stats(self, client, setup, make_job):
        customer, sam, alex, _ = setup
        first = make_job(employees=[sam], customer=customer, estimated_price=90.0)
        second = make_job(scheduled_for=MONDAY.replace(hour=14), employees=[sam, alex], estimated_price=60.0)
        make_job(scheduled_for=MONDAY + timedelta(days=1, hours=8))

        data = client.get(
            "/jobs/calendar", params={"start": "2030-03-04T00:00:00Z", "end": "2030-03-06T00:00:00Z"}
        ).json()

        assert len(data["events"]) == 3
        assert data["groupedByDay"]["2030-03-04"] == [first.id, second.id]
        assert len(data["groupedByDay"]["2030-03-05"]) == 1
        assert data["groupedByEmployee"][str(alex.id)] == [second.id]
        assert len(data["groupedByEmployee"]["unassigned"]) == 1
        assert data["dailyStats"]["2030-03-04"]["totalRevenue"] == 150
        assert {r["id"] for r in data["resources"]} == {sam.id, alex.id}
        assert data["events"][0]["customerName"] == "Dana Reyes"


class TestReschedule:
    def test_moves_job_and_notifies(self, client, db, setup, make_job, sent_emails, event_bus):
        customer, sam, _, _ = setup
        job = make_job(employees=[sam], customer=customer, scheduled_end=MONDAY.replace(hour=12))
        changes = []
        event_bus.subscribe(JobsChanged, changes.append)

        response = client.post(
            f"/jobs/{job.id}/reschedule", json={"newDate": "2030-03-05T09:00:00Z", "reason": "  Client request "}
        )

        assert response.status_code == 200
        assert response.json()["success"] is True
        db.refresh(job)
        assert job.scheduled_for == datetime(2030, 3, 5, 9)
        assert job.scheduled_end == datetime(2030, 3, 5, 11)
        event = db.query(JobEvent).filter(JobEvent.job_id == job.id, JobEvent.type == "rescheduled").one()
        assert event.meta["reason"] == "Client request"
        assert sent_emails["rescheduled"].await_count == 2
        recipients = {call.args[0].to for call in sent_emails["rescheduled"].await_args_list}
        assert recipients == {customer.email, sam.email}
        assert changes == [JobsChanged(job_ids=(job.id,), reason="rescheduled")]

    def test_new_end_sets_duration(self, client, db, setup, make_job):
        _, sam, _, _ = setup
        job = make_job(employees=[sam])
        client.post(
            f"/jobs/{job.id}/reschedule",
            json={"newDate": "2030-03-04T13:00:00Z", "newEndDate": "2030-03-04T15:30:00Z"},
        )
        db.refresh(job)
        assert job.duration_minutes == 150

    def test_in_progress_goes_back_to_scheduled(self, client, db, setup, make_job):
        _, sam, _, _ = setup
        job = make_job(employees=[sam], status="in-progress")
        client.post(f"/jobs/{job.id}/reschedule", json={"newDate": "2030-03-04T13:00:00Z"})
        db.refresh(job)
        assert job.status == "scheduled"

    @pytest.mark.parametrize("status", ["completed", "cancelled"])
    def test_closed_jobs_cannot_move(self, client, setup, make_job, status):
        job = make_job(status=status)
        response = client.post(f"/jobs/{job.id}/reschedule", json={"newDate": "2030-03-04T13:00:00Z"})
        assert response.status_code == 400

    def test_email_failure_does_not_fail_request(self, client, setup, make_job, sent_emails):
        customer, sam, _, _ = setup
        job = make_job(employees=[sam], customer=customer)
        sent_emails["rescheduled"].side_effect = Exception("Resend is down")

        response = client.post(f"/jobs/{job.id}/reschedule", json={"newDate": "2030-03-04T13:00:00Z"})

        assert response.status_code == 200


class TestAssign:
    def test_assigns_and_emails(self, client, db, setup, make_job, sent_emails):
        _, sam, alex, _ = setup
        job = make_job(employees=[sam], status="pending")

        response = client.post(f"/jobs/{job.id}/assign", json={"employeeId": alex.id})

        assert response.status_code == 200
        assert response.json()["job"]["assignedEmployeeIds"] == [sam.id, alex.id]
        assert response.json()["job"]["status"] == "scheduled"
        sent_emails["assignment"].assert_awaited_once()
        assert sent_emails["assignment"].await_args.args[0].employee_email == alex.email

    def test_notification_can_be_skipped(self, client, setup, make_job, sent_emails):
        _, sam, _, _ = setup
        job = make_job()
        client.post(f"/jobs/{job.id}/assign", json={"employeeId": sam.id, "sendNotification": False})
        sent_emails["assignment"].assert_not_awaited()

    def test_per_job_employee_needs_pay(self, client, make_job, make_employee):
        contractor = make_employee("Jo", pay_type="per_job")
        job = make_job()
        response = client.post(f"/jobs/{job.id}/assign", json={"employeeId": contractor.id})
        assert response.status_code == 409

    def test_unknown_employee(self, client, make_job):
        job = make_job()
        assert client.post(f"/jobs/{job.id}/assign", json={"employeeId": 999}).status_code == 404

    def test_reassignment_panel_through_client(self, client, setup, make_job, sent_emails):
        _, sam, alex, _ = setup
        make_job(employees=[sam])
        target = make_job(scheduled_for=MONDAY.replace(hour=10, minute=30), duration_minutes=60)
        api = OperationsClient(http_client=client)

        statuses = api.availability(MONDAY.replace(hour=10, minute=30), 60, exclude_job_id=target.id)["statuses"]
        assert statuses[str(sam.id)] == "busy"
        assert statuses[str(alex.id)] == "available"

        result = api.assign_job(target.id, alex.id, send_notification=False)
        assert result["job"]["assignedEmployeeIds"] == [alex.id]
        sent_emails["assignment"].assert_not_awaited()


class TestJobDraftAgainstApi:
    """The create-job dialog model driving the real endpoints"""

    def test_conflict_override_round(self, client, setup, make_job):
        customer, sam, alex, plan = setup
        make_job(employees=[sam], customer=customer)
        api = OperationsClient(http_client=client)

        draft = JobDraft(
            customer_id=customer.id,
            plan_id=plan.id,
            plan_duration=plan.estimated_duration,
            location="1 High Street",
            scheduled_for=parse_instant("2030-03-04T10:00:00Z"),
            assigned_employee_ids=[alex.id],
        )

        with pytest.raises(ApiError) as excinfo:
            draft.submit(api)
        assert excinfo.value.is_conflict
        assert excinfo.value.code == "duplicate_job"

        draft.apply_override(excinfo.value.override)
        created = draft.submit(api)
        assert created["durationMinutes"] == 120

    def test_availability_through_client(self, client, setup, make_job):
        customer, sam, alex, plan = setup
        make_job(employees=[sam])
        api = OperationsClient(http_client=client)

        draft = JobDraft(
            customer_id=customer.id,
            plan_id=plan.id,
            location="1 High Street",
            scheduled_for=parse_instant("2030-03-04T10:30:00Z"),
            duration_minutes=30,
            assigned_employee_ids=[sam.id, alex.id],
        )
        draft.refresh_availability(api.jobs_in_window, [sam.id, alex.id])

        assert draft.busy_assignees() == [sam.id]
        assert draft.availability.label_for(alex.id) == "Available"

        draft.scheduled_for = parse_instant("2030-03-04T12:00:00Z")
        assert draft.busy_assignees() == []

    def test_missing_fields_never_reach_server(self):
        draft = JobDraft(location="  ")
        with pytest.raises(DraftInvalid, match="Plan, client address, and assigned staff are required"):
            draft.submit(None)
