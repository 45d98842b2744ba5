"""Employee aggregate creation, scalar updates and draft saves."""

import asyncio

import pytest

from hrms_api.exceptions import (
    EmployeeNotFoundError,
    PartialFailureError,
    PersistenceError,
    ValidationError,
)
from hrms_api.models.domain.employee import EmployeeStatus, OnboardingStatus
from hrms_api.services.employee_submitter import prepare_child_record


def contact(name: str, phone: str | None = "555-0100") -> dict:
    item = {"name": name, "relationship": "Sibling"}
    if phone is not None:
        item["phone"] = phone
    return item


class TestCreateWithChildren:
    """Parent-first creation with all-settled child writes."""

    def test_employee_is_created_before_any_child(self, submitter, gateway) -> None:
        children = {
            "educations": [{"school_institution": "State U"}],
            "emergency_contacts": [contact("Ann"), contact("Bob")],
            "trainings": [{"training_type": "CPR"}],
        }

        asyncio.run(
            submitter.create_with_children({"first_name": "Jane", "last_name": "Doe"}, children)
        )

        assert gateway.calls[0] == ("create", "employees")
        assert all(collection != "employees" for _, collection in gateway.calls[1:])
        assert len(gateway.calls) == 5

    def test_missing_start_date_passes_through(self, submitter, gateway) -> None:
        """An education item without start_date is saved with no synthetic default."""
        education = {
            "education_type": "Graduate",
            "school_institution": "State U",
            "degree": "MSW",
            "specialty_major": "Clinical Social Work",
            "end_date": "2019-05-15T00:00:00.000Z",
        }

        employee = asyncio.run(
            submitter.create_with_children(
                {"first_name": "Jane", "last_name": "Doe", "work_email": "jane@x.com"},
                {"educations": [education]},
            )
        )

        assert employee.work_email == "jane@x.com"
        saved = gateway.records["educations"][0]
        assert saved["start_date"] is None
        assert saved["end_date"].isoformat() == "2019-05-15"
        assert saved["employee_id"] == employee.id

    def test_third_of_five_failing_is_reported(self, submitter, gateway) -> None:
        contacts = [contact("A"), contact("B"), contact("C", phone=None), contact("D"), contact("E")]

        with pytest.raises(PartialFailureError) as exc_info:
            asyncio.run(
                submitter.create_with_children(
                    {"first_name": "Jane", "last_name": "Doe"},
                    {"emergency_contacts": contacts},
                )
            )

        error = exc_info.value
        assert error.code == "PARTIAL_FAILURE"
        assert len(error.failures) == 1
        failure = error.failures[0]
        assert failure["collection"] == "emergency_contacts"
        assert failure["index"] == 2
        assert failure["code"] == "VALIDATION_ERROR"
        assert "phone" in failure["fields"]

        assert [entry["index"] for entry in error.succeeded] == [0, 1, 3, 4]
        assert sorted(r["name"] for r in gateway.records["emergency_contacts"]) == ["A", "B", "D", "E"]
        # The employee itself is kept
        assert error.employee.first_name == "Jane"
        assert len(gateway.employees) == 1

    def test_server_failures_do_not_stop_siblings(self, submitter, gateway) -> None:
        gateway.fail[("trainings", 0)] = PersistenceError("Failed to save trainings record")

        with pytest.raises(PartialFailureError) as exc_info:
            asyncio.run(
                submitter.create_with_children(
                    {"first_name": "Jane", "last_name": "Doe"},
                    {
                        "trainings": [{"training_type": "CPR"}, {"training_type": "HIPAA"}],
                        "educations": [{"degree": "BSN"}],
                    },
                )
            )

        failures = exc_info.value.failures
        assert failures == [
            {
                "collection": "trainings",
                "index": 0,
                "reason": "Failed to save trainings record",
                "code": "PERSISTENCE_ERROR",
            }
        ]
        assert len(gateway.records["trainings"]) == 1
        assert len(gateway.records["educations"]) == 1

    def test_unexpected_child_error_is_reported_not_raised(self, submitter, gateway) -> None:
        gateway.fail[("educations", 0)] = RuntimeError("boom")

        with pytest.raises(PartialFailureError) as exc_info:
            asyncio.run(
                submitter.create_with_children(
                    {"first_name": "Jane", "last_name": "Doe"},
                    {"educations": [{"degree": "BSN"}]},
                )
            )

        assert exc_info.value.failures[0]["code"] == "INTERNAL_ERROR"

    def test_rejected_employee_aborts_without_children(self, submitter, gateway) -> None:
        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(
                submitter.create_with_children(
                    {"first_name": "", "last_name": "Doe"},
                    {"educations": [{"degree": "BSN"}]},
                )
            )

        assert "first_name" in exc_info.value.field_errors
        assert gateway.calls == [("create", "employees")]
        assert gateway.records == {}

    def test_empty_collections_make_no_calls(self, submitter, gateway) -> None:
        asyncio.run(
            submitter.create_with_children(
                {"first_name": "Jane", "last_name": "Doe"},
                {"educations": [], "trainings": []},
            )
        )
        assert gateway.calls == [("create", "employees")]


class TestPrepareChildRecord:
    """Client-only keys and date normalization."""

    def test_strips_client_only_keys(self) -> None:
        record = prepare_child_record(
            "trainings",
            {"id": 7, "source": "ui", "employee_id": "x", "training_type": "CPR"},
        )
        assert record == {"training_type": "CPR"}

    def test_normalizes_declared_dates(self) -> None:
        record = prepare_child_record(
            "state_licenses",
            {"license_number": "L1", "state": "OH", "issue_date": "2024-01-31T00:00:00Z"},
        )
        assert record["issue_date"] == "2024-01-31"

    def test_empty_date_is_untouched(self) -> None:
        record = prepare_child_record("educations", {"start_date": ""})
        assert record["start_date"] == ""

    def test_malformed_date_is_a_validation_error(self) -> None:
        with pytest.raises(ValidationError):
            prepare_child_record("educations", {"start_date": "31/01/2024"})

    def test_unknown_collection(self) -> None:
        with pytest.raises(ValidationError):
            prepare_child_record("pets", {"name": "Rex"})


class TestUpdateScalarFields:
    """Allow-listed employee updates."""

    def test_drops_non_updatable_keys(self, submitter, gateway) -> None:
        employee = gateway.add_employee()

        updated = asyncio.run(
            submitter.update_scalar_fields(
                employee.id,
                {"job_title": "Counselor", "approved_by": "mallory", "educations": [], "id": "x"},
            )
        )

        assert updated.job_title == "Counselor"
        assert updated.approved_by is None
        assert "approved_by" not in gateway.employees[employee.id]

    def test_nothing_updatable_returns_current_employee(self, submitter, gateway) -> None:
        employee = gateway.add_employee()

        result = asyncio.run(submitter.update_scalar_fields(employee.id, {"bogus": 1}))

        assert result.id == employee.id
        assert ("update", "employees") not in gateway.calls

    def test_missing_employee(self, submitter) -> None:
        from uuid import uuid4

        with pytest.raises(EmployeeNotFoundError):
            asyncio.run(submitter.update_scalar_fields(uuid4(), {"bogus": 1}))


class TestDraftSession:
    """Create-once, update-afterwards draft saves."""

    def test_second_save_updates_same_employee(self, submitter, gateway) -> None:
        draft = submitter.draft_session()
        fields = {"first_name": "Jane", "last_name": "Doe", "cell_phone": "555-0100"}

        first = asyncio.run(draft.save(fields))
        second = asyncio.run(draft.save(fields))

        assert first == second
        assert len(gateway.employees) == 1
        assert gateway.calls == [("create", "employees"), ("update", "employees")]
        row = gateway.employees[first["employee_id"]]
        assert row["onboarding_status"] == OnboardingStatus.DRAFT

    def test_later_values_win(self, submitter, gateway) -> None:
        draft = submitter.draft_session()
        asyncio.run(draft.save({"first_name": "Jane", "last_name": "Doe", "job_title": "RN"}))
        result = asyncio.run(draft.save({"job_title": "LPN"}))

        assert gateway.employees[result["employee_id"]]["job_title"] == "LPN"

    def test_empty_values_are_not_sent(self, submitter, gateway) -> None:
        draft = submitter.draft_session()
        result = asyncio.run(
            draft.save({"first_name": "Jane", "last_name": "Doe", "middle_name": "", "gender": None})
        )
        asyncio.run(draft.save({"job_title": "", "home_city": None}))

        row = gateway.employees[result["employee_id"]]
        assert "middle_name" not in row
        assert "gender" not in row
        assert "job_title" not in row

    def test_concurrent_first_saves_create_once(self, submitter, gateway) -> None:
        draft = submitter.draft_session()

        async def double_click() -> list:
            return await asyncio.gather(
                draft.save({"first_name": "Jane", "last_name": "Doe"}),
                draft.save({"first_name": "Jane", "last_name": "Doe"}),
            )

        first, second = asyncio.run(double_click())

        assert first == second
        assert len(gateway.employees) == 1
        assert gateway.calls.count(("create", "employees")) == 1

    def test_resumes_existing_draft(self, submitter, gateway) -> None:
        employee = gateway.add_employee()
        draft = submitter.draft_session(employee.id)

        result = asyncio.run(draft.save({"job_title": "RN"}))

        assert result == {"employee_id": employee.id}
        assert len(gateway.employees) == 1

    def test_writable_fields_apply_to_every_save(self, submitter, gateway) -> None:
        draft = submitter.draft_session(
            writable=frozenset({"first_name", "last_name", "job_title"}),
            initial={"status": EmployeeStatus.INACTIVE},
        )

        result = asyncio.run(
            draft.save({"first_name": "Jane", "last_name": "Doe", "status": "active"})
        )
        asyncio.run(draft.save({"job_title": "RN", "onboarding_status": "completed"}))

        row = gateway.employees[result["employee_id"]]
        assert row["status"] == EmployeeStatus.INACTIVE
        assert row["onboarding_status"] == OnboardingStatus.DRAFT
        assert row["job_title"] == "RN"
