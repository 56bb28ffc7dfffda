import pytest
from django.core.exceptions import PermissionDenied, ValidationError

from mentoring.exceptions import DuplicateEnrollment, RoleMismatch
from mentoring.models import ActivityLog, ClassGroup, MenteeProfile, Role
from mentoring.services import directory


@pytest.mark.django_db
def test_create_account_lowercases_email_and_makes_mentee_profile():
    account = directory.create_account(Role.MENTEE, "  Student@Example.COM ", "secret123", "Stu")
    assert account.email == "student@example.com"
    assert account.username == "student@example.com"
    assert account.check_password("secret123")
    assert MenteeProfile.objects.filter(pk=account.pk).exists()


@pytest.mark.django_db
def test_staff_accounts_have_no_mentee_profile():
    account = directory.create_account(Role.MENTOR, "m@example.com", "secret123")
    assert not MenteeProfile.objects.filter(pk=account.pk).exists()


@pytest.mark.django_db
@pytest.mark.parametrize("email,password", [
    ("not-an-email", "secret123"),
    ("ok@example.com", "short"),
    ("", ""),
])
def test_create_account_rejects_bad_credentials(email, password):
    with pytest.raises(ValidationError):
        directory.create_account(Role.MENTOR, email, password)


@pytest.mark.django_db
def test_min_password_length_is_configurable(settings):
    settings.MENTORING_MIN_PASSWORD_LENGTH = 10
    with pytest.raises(ValidationError):
        directory.create_account(Role.MENTOR, "m@example.com", "secret123")


@pytest.mark.django_db
def test_unknown_role_is_rejected():
    with pytest.raises(ValidationError):
        directory.create_account("superuser", "x@example.com", "secret123")


def test_role_predicates(make_account):
    assert make_account(Role.ADMIN_MENTOR).is_mentor
    assert make_account(Role.ADMIN_MENTOR).is_admin_capable
    assert not make_account(Role.MENTOR).is_admin_capable
    assert not make_account(Role.ADMIN).is_mentor
    assert make_account(Role.MENTEE).is_mentee


def test_create_mentee_assigns_creating_mentor(mentor):
    account = directory.create_mentee(mentor, "kid@example.com", "secret123", "Kid", "  42 ")
    profile = account.mentee_profile
    assert account.role == Role.MENTEE
    assert account.created_by == mentor
    assert profile.primary_mentor == mentor
    assert profile.enrollment_no == "42"


def test_admin_created_mentee_has_no_primary_mentor(admin_account):
    account = directory.create_mentee(admin_account, "kid@example.com", "secret123", "Kid", "42")
    assert account.mentee_profile.primary_mentor is None


def test_create_mentee_rejects_duplicate_enrollment(mentor, mentee):
    assert directory.is_duplicate_enrollment(" 101 ")
    with pytest.raises(DuplicateEnrollment):
        directory.create_mentee(mentor, "kid@example.com", "secret123", "Kid", "101")


def test_mentee_cannot_create_mentees(mentee):
    with pytest.raises(PermissionDenied):
        directory.create_mentee(mentee, "kid@example.com", "secret123", "Kid", "7")


def test_create_staff_account_is_admin_only(admin_account, mentor):
    created = directory.create_staff_account(admin_account, Role.MENTOR, "new@example.com", "secret123", "New")
    assert created.role == Role.MENTOR
    assert ActivityLog.objects.filter(action="create_account", user=admin_account).exists()

    with pytest.raises(PermissionDenied):
        directory.create_staff_account(mentor, Role.MENTOR, "other@example.com", "secret123")


def test_set_role_toggles_between_mentor_and_admin_mentor(admin_account, mentor):
    updated = directory.set_role(admin_account, mentor.pk, Role.ADMIN_MENTOR)
    assert updated.role == Role.ADMIN_MENTOR
    assert updated.is_admin_capable

    log = ActivityLog.objects.get(action="set_role")
    assert log.old_data == {"role": "mentor"}
    assert log.new_data == {"role": "admin+mentor"}

    assert directory.toggle_admin_access(admin_account, mentor.pk).role == Role.MENTOR


def test_set_role_refuses_other_transitions(admin_account, mentor, mentee):
    with pytest.raises(ValidationError):
        directory.set_role(admin_account, mentor.pk, Role.ADMIN)
    with pytest.raises(RoleMismatch):
        directory.set_role(admin_account, mentee.pk, Role.MENTOR)


def test_set_role_requires_admin(mentor, other_mentor):
    with pytest.raises(PermissionDenied):
        directory.set_role(mentor, other_mentor.pk, Role.ADMIN_MENTOR)


def test_list_by_role(mentor, other_mentor, mentee):
    assert set(directory.list_by_role(Role.MENTOR)) == {mentor, other_mentor}
    assert list(directory.list_by_role(Role.MENTEE)) == [mentee]


@pytest.mark.django_db
def test_email_already_taken_is_a_validation_error():
    directory.create_account(Role.MENTOR, "taken@example.com", "secret123")
    with pytest.raises(ValidationError) as excinfo:
        directory.create_account(Role.MENTEE, "Taken@Example.com", "secret123")
    assert excinfo.value.code == "email_taken"


def test_create_mentee_with_existing_email_leaves_no_rows(mentor, mentee):
    with pytest.raises(ValidationError):
        directory.create_mentee(mentor, mentee.email.upper(), "secret123", "Twin", "202")
    assert not directory.is_duplicate_enrollment("202")


def test_supervising_mentor_edits_mentee(mentor, mentee):
    class_group = ClassGroup.objects.create(mentor=mentor, name="CSE", year="TE", section="A")
    profile = directory.update_mentee(mentor, mentee.pk, {
        "display_name": " Renamed ", "enrollment_no": " 555 ", "class_group": class_group,
    })
    assert profile.account.display_name == "Renamed"
    assert profile.enrollment_no == "555"
    assert profile.class_group == class_group

    log = ActivityLog.objects.get(action="update_mentee")
    assert log.old_data["enrollment_no"] == "101"
    assert log.new_data["enrollment_no"] == "555"

    profile = directory.update_mentee(mentor, mentee.pk, {"class_group": None})
    assert profile.class_group is None


def test_guide_can_edit_and_keeping_own_enrollment_is_fine(mentor, other_mentor, mentee):
    MenteeProfile.objects.filter(pk=mentee.pk).update(guide=other_mentor)
    profile = directory.update_mentee(other_mentor, mentee.pk, {"enrollment_no": "101"})
    assert profile.enrollment_no == "101"


def test_edit_rejects_enrollment_taken_by_another_mentee(mentor, mentee):
    directory.create_mentee(mentor, "kid@example.com", "secret123", "Kid", "202")
    with pytest.raises(DuplicateEnrollment):
        directory.update_mentee(mentor, mentee.pk, {"enrollment_no": "202"})
    assert MenteeProfile.objects.get(pk=mentee.pk).enrollment_no == "101"


def test_edit_rules_for_outsiders_classes_and_targets(mentor, other_mentor, admin_account, mentee):
    with pytest.raises(PermissionDenied):
        directory.update_mentee(other_mentor, mentee.pk, {"display_name": "x"})

    foreign = ClassGroup.objects.create(mentor=other_mentor, name="ME", year="SE", section="B")
    with pytest.raises(PermissionDenied):
        directory.update_mentee(mentor, mentee.pk, {"class_group": foreign})
    assert directory.update_mentee(admin_account, mentee.pk, {"class_group": foreign}).class_group == foreign

    with pytest.raises(RoleMismatch):
        directory.update_mentee(admin_account, mentor.pk, {"display_name": "x"})
    with pytest.raises(ValidationError):
        directory.update_mentee(mentor, mentee.pk, {"password": "x"})
