"""Tests for the SQLAlchemy-backed Account Store and Share Store."""

import pytest

from app.eligibility import AccountStatus
from app.errors import StoreError
from app.models import AppliedShare, AppliedShareError
from app.repositories import AccountRepository, ShareRepository


def _share(account, company_share_id: int = 710, status: str = "applied") -> AppliedShare:
    return AppliedShare(
        user_id=account.user_id,
        account_id=account.id,
        company_share_id=company_share_id,
        company_name="Bandipur Cable Car and Tourism Ltd",
        scrip="BCTL",
        share_group_name="Ordinary Shares",
        share_type_name="IPO",
        sub_group="For General Public",
        applied_kitta=10,
        status=status,
    )


def _error(account, applied_share_id: str, message: str) -> AppliedShareError:
    return AppliedShareError(
        user_id=account.user_id,
        account_id=account.id,
        applied_share_id=applied_share_id,
        message=message,
    )


class TestAccountRepository:
    def test_create_assigns_id(self, make_account, account_repo: AccountRepository) -> None:
        account = make_account()
        assert account.id
        assert account_repo.get(account.id).username == account.username

    def test_duplicate_username_is_store_error(self, make_account) -> None:
        make_account(username="00012345")
        with pytest.raises(StoreError):
            make_account(username="00012345")

    def test_list_by_user_scopes_to_owner(self, make_account, account_repo: AccountRepository) -> None:
        mine = make_account(user_id="user-001")
        make_account(user_id="user-002")

        assert [a.id for a in account_repo.list_by_user("user-001")] == [mine.id]

    def test_get_for_user_hides_other_users(self, make_account, account_repo: AccountRepository) -> None:
        account = make_account(user_id="user-001")
        assert account_repo.get_for_user(account.id, "user-002") is None
        assert account_repo.get_for_user(account.id, "user-001") is not None

    def test_set_status(self, make_account, account_repo: AccountRepository) -> None:
        account = make_account()
        account_repo.set_status(account.id, AccountStatus.PASSWORD_EXPIRED)
        assert account_repo.get(account.id).status == "password_expired"

    def test_soft_delete(self, make_account, account_repo: AccountRepository) -> None:
        account = make_account()

        assert account_repo.delete(account.id) is True
        assert account_repo.get(account.id) is None
        assert account_repo.list_all() == []
        assert account_repo.list_by_user(account.user_id) == []
        # second delete finds nothing
        assert account_repo.delete(account.id) is False

    def test_deleted_username_can_be_linked_again(self, make_account, account_repo: AccountRepository) -> None:
        first = make_account(username="00012345")
        account_repo.delete(first.id)

        relinked = make_account(username="00012345")

        assert relinked.id != first.id
        assert [a.id for a in account_repo.list_all()] == [relinked.id]
        # and the live row still holds the username
        with pytest.raises(StoreError):
            make_account(username="00012345")

    def test_delete_unknown(self, account_repo: AccountRepository) -> None:
        assert account_repo.delete("no-such-account") is False


class TestShareRepository:
    def test_find_by_account_and_issue(self, make_account, share_repo: ShareRepository) -> None:
        account = make_account()
        share_id = share_repo.insert_applied_share(_share(account))

        found = share_repo.find_by_account_and_issue(account.id, 710)
        assert found is not None
        assert found.id == share_id
        assert share_repo.find_by_account_and_issue(account.id, 711) is None

    def test_lookup_is_per_account(self, make_account, share_repo: ShareRepository) -> None:
        first = make_account()
        second = make_account()
        share_repo.insert_applied_share(_share(first))

        assert share_repo.find_by_account_and_issue(second.id, 710) is None

    def test_errors_and_seen(self, make_account, share_repo: ShareRepository) -> None:
        account = make_account()
        other = make_account(user_id="user-002")
        for owner in (account, account, other):
            share_id = share_repo.insert_applied_share(_share(owner, status="failed"))
            share_repo.insert_applied_share_error(_error(owner, share_id, "boom"))

        assert len(share_repo.list_errors_by_user(account.user_id)) == 2
        assert share_repo.mark_errors_seen(account.user_id) == 2
        assert all(e.seen for e in share_repo.list_errors_by_user(account.user_id))
        assert share_repo.mark_errors_seen(account.user_id) == 0
        assert not any(e.seen for e in share_repo.list_errors_by_user(other.user_id))

    def test_errors_filtered_by_account(self, make_account, share_repo: ShareRepository) -> None:
        first = make_account()
        second = make_account()
        for owner in (first, second):
            share_id = share_repo.insert_applied_share(_share(owner, status="failed"))
            share_repo.insert_applied_share_error(_error(owner, share_id, f"boom {owner.id}"))

        errors = share_repo.list_errors_by_user(first.user_id, first.id)

        assert [(e.account_id, e.message) for e in errors] == [(first.id, f"boom {first.id}")]
        assert len(share_repo.list_errors_by_user(first.user_id)) == 2

    def test_one_error_per_share(self, make_account, share_repo: ShareRepository) -> None:
        account = make_account()
        share_id = share_repo.insert_applied_share(_share(account, status="failed"))
        share_repo.insert_applied_share_error(_error(account, share_id, "first"))
        with pytest.raises(StoreError):
            share_repo.insert_applied_share_error(_error(account, share_id, "second"))
