from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from app.eligibility import AccountStatus


# MeroShare wire records


class OwnDetail(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    boid: str = ""
    contact: str = ""
    demat: str = ""
    email: str = ""
    name: str = ""
    dmat_expiry_date: str = Field("", alias="dematExpiryDate")
    password_expiry_date: datetime = Field(..., alias="passwordExpiryDate")
    expired_date: datetime = Field(..., alias="expiredDate")

    @field_validator("boid", "contact", "demat", "email", "name", "dmat_expiry_date", mode="before")
    @classmethod
    def none_as_empty(cls, value: object) -> object:
        return "" if value is None else value


class BankDetail(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int
    account_branch_id: int = Field(..., alias="accountBranchId")
    account_number: str = Field(..., alias="accountNumber")
    account_type_id: int = Field(..., alias="accountTypeId")
    account_type_name: str = Field("", alias="accountTypeName")
    branch_name: str = Field("", alias="branchName")


class BankOption(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str = ""


class ApplicableIssue(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    company_share_id: int = Field(..., alias="companyShareId")
    sub_group: str = Field("", alias="subGroup")
    scrip: str = ""
    company_name: str = Field("", alias="companyName")
    share_type_name: str = Field("", alias="shareTypeName")
    share_group_name: str = Field("", alias="shareGroupName")
    status_name: str = Field("", alias="statusName")
    action: Optional[str] = None
    issue_open_date: str = Field("", alias="issueOpenDate")
    issue_close_date: str = Field("", alias="issueCloseDate")

    @field_validator(
        "sub_group", "scrip", "company_name", "share_type_name", "share_group_name",
        "status_name", "issue_open_date", "issue_close_date",
        mode="before",
    )
    @classmethod
    def none_as_empty(cls, value: object) -> object:
        return "" if value is None else value


class ApplicableIssuesPage(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    issues: list[ApplicableIssue] = Field(default_factory=list, alias="object")
    total_count: int = Field(0, alias="totalCount")


class ApplicationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    demat: str
    boid: str
    account_number: str = Field(..., alias="accountNumber")
    customer_id: int = Field(..., alias="customerId")
    account_branch_id: int = Field(..., alias="accountBranchId")
    account_type_id: int = Field(..., alias="accountTypeId")
    applied_kitta: str = Field(..., alias="appliedKitta")
    crn_number: str = Field(..., alias="crnNumber")
    transaction_pin: str = Field(..., alias="transactionPIN")
    company_share_id: str = Field(..., alias="companyShareId")
    bank_id: int = Field(..., alias="bankId")


# API payloads


class CreateAccountRequest(BaseModel):
    client_id: int = Field(..., gt=0, validation_alias=AliasChoices("client_id", "clientId"))
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    bank_id: int = Field(..., gt=0, validation_alias=AliasChoices("bank_id", "bankId"))
    crn_number: str = Field(..., min_length=4, validation_alias=AliasChoices("crn_number", "crn"))
    transaction_pin: str = Field(
        ...,
        min_length=4,
        validation_alias=AliasChoices("transaction_pin", "pin"),
    )
    preferred_kitta: int = Field(10, ge=10, validation_alias=AliasChoices("preferred_kitta", "kitta"))


class AccountCreatedResponse(BaseModel):
    message: str = "Account created successfully"
    account_id: str


class AccountItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    contact: str
    client_id: int
    username: str
    demat: str
    boid: str
    bank_id: int
    preferred_kitta: int
    dmat_expiry_date: str
    expired_date: datetime
    password_expiry_date: datetime
    status: AccountStatus
    created_at: Optional[datetime] = None


class AccountStatusUpdate(BaseModel):
    status: AccountStatus


class CredentialsRequest(BaseModel):
    client_id: int = Field(..., gt=0, validation_alias=AliasChoices("client_id", "clientId"))
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class BankOptionItem(BaseModel):
    bank_id: int
    bank_name: str


class AppliedShareItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    account_id: str
    company_share_id: int
    company_name: str
    scrip: str
    share_group_name: str
    share_type_name: str
    sub_group: str
    applied_kitta: int
    status: str
    created_at: Optional[datetime] = None


class AppliedShareErrorItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    account_id: str
    applied_share_id: str
    message: str
    seen: bool
    created_at: Optional[datetime] = None


class MessageResponse(BaseModel):
    message: str
    count: Optional[int] = None
