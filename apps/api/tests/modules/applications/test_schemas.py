"""
Tests for application request validation.
"""

from datetime import date

import pytest
from pydantic import ValidationError

from app.modules.applications.schemas import (
    ApplicationCreate,
    ApplicationReviewUpdate,
    EducationEntry,
    ExperienceEntry,
    age_on,
)


class TestAgeOn:
    def test_before_birthday(self):
        assert age_on(date(2000, 6, 15), date(2026, 6, 14)) == 25

    def test_on_birthday(self):
        assert age_on(date(2000, 6, 15), date(2026, 6, 15)) == 26


class TestApplicationCreate:
    def test_valid_payload(self, make_payload):
        data = ApplicationCreate.model_validate(make_payload(email="Jane.Doe@X.com"))

        assert data.email == "jane.doe@x.com"
        assert data.name == "Jane Doe"

    def test_strips_text_fields(self, make_payload):
        data = ApplicationCreate.model_validate(make_payload(name="  Jane Doe  "))
        assert data.name == "Jane Doe"

    @pytest.mark.parametrize(
        "field, value",
        [
            ("name", "Jane Doe 3rd"),
            ("phone", "98765"),
            ("phone", "98765432ab"),
            ("email", "not-an-email"),
            ("declaration_agreed", False),
            ("education", []),
            ("experience", []),
        ],
    )
    def test_rejects_invalid_field(self, make_payload, field, value):
        with pytest.raises(ValidationError):
            ApplicationCreate.model_validate(make_payload(**{field: value}))

    def test_rejects_underage_applicant(self, make_payload):
        today = date.today()
        dob = date(today.year - 17, 1, 1)

        with pytest.raises(ValidationError, match="between 18 and 65"):
            ApplicationCreate.model_validate(make_payload(dob=dob.isoformat()))

    def test_rejects_applicant_over_age(self, make_payload):
        dob = date(date.today().year - 70, 1, 1)

        with pytest.raises(ValidationError):
            ApplicationCreate.model_validate(make_payload(dob=dob.isoformat()))

    def test_other_degree_needs_description(self, make_payload):
        with pytest.raises(ValidationError, match="qualifying_degree_other"):
            ApplicationCreate.model_validate(make_payload(qualifying_degree="Others"))

        data = ApplicationCreate.model_validate(
            make_payload(qualifying_degree="Others", qualifying_degree_other="Ph.D")
        )
        assert data.qualifying_degree_other == "Ph.D"


class TestEducationEntry:
    def entry(self, **overrides) -> dict:
        entry = {
            "institute": "City College",
            "exam_passed": "12th Class",
            "name_of_examination": "HSC",
            "year_of_passing": "2012",
            "marks_percentage": "81",
        }
        entry.update(overrides)
        return entry

    def test_valid(self):
        assert EducationEntry.model_validate(self.entry()).year_of_passing == "2012"

    @pytest.mark.parametrize("year", ["1969", str(date.today().year + 2), "12", "20x0"])
    def test_rejects_year(self, year):
        with pytest.raises(ValidationError):
            EducationEntry.model_validate(self.entry(year_of_passing=year))

    def test_other_exam_needs_description(self):
        with pytest.raises(ValidationError):
            EducationEntry.model_validate(self.entry(exam_passed="Others"))

        entry = EducationEntry.model_validate(
            self.entry(exam_passed="Others", exam_passed_other="Diploma")
        )
        assert entry.exam_passed_other == "Diploma"


class TestExperienceEntry:
    def test_current_job_has_no_end_date(self):
        entry = ExperienceEntry(
            company_name="Acme",
            start_date=date(2020, 1, 1),
            end_date=date(2022, 1, 1),
            is_currently_working=True,
        )
        assert entry.end_date is None


class TestApplicationReviewUpdate:
    def test_rating_range(self):
        assert ApplicationReviewUpdate(rating=5).rating == 5
        with pytest.raises(ValidationError):
            ApplicationReviewUpdate(rating=6)

    def test_omitted_fields_are_unset(self):
        update = ApplicationReviewUpdate(remarks="Strong profile")
        assert update.model_dump(exclude_unset=True) == {"remarks": "Strong profile"}
