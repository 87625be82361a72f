"""
app/mappers/schema_definitions.py

Static field tables for the two supported CSV export formats.

Every downstream component (field mapping, detection, validation,
transformation, persistence) reads its per-field behaviour from the
``FieldSpec`` tables declared here, so adding a column is a data change.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping


class SchemaKind:
    TRAFFIC_REPORT = "traffic_report"
    PLAYERS_DATA = "players_data"

    ALL: tuple[str, ...] = (TRAFFIC_REPORT, PLAYERS_DATA)


class FieldType:
    STRING = "string"
    INTEGER = "integer"
    DECIMAL = "decimal"
    DATE = "date"
    BOOLEAN = "boolean"


class OnAbsent:
    """
    Value a numeric field takes when the cell is empty or unparseable.
    """

    ZERO = "zero"
    NULL = "null"


class UnknownSchemaKindError(ValueError):
    """
    Raised when a schema kind other than the supported two is requested.
    """

    def __init__(self, kind: object) -> None:
        allowed = ", ".join(SchemaKind.ALL)
        super().__init__(f"Unknown schema kind {kind!r}. Allowed values: {allowed}.")
        self.kind = kind


@dataclass(frozen=True)
class FieldSpec:
    """
    Declarative description of one canonical field.
    """

    name: str
    column: str
    field_type: str
    variants: tuple[str, ...] = ()
    on_absent: str = OnAbsent.ZERO
    required: bool = False
    non_negative: bool = False
    digits_only: bool = False
    # Storage limits: VARCHAR length for strings, NUMERIC(precision, scale) for decimals.
    max_length: int | None = None
    precision: int | None = None
    scale: int | None = None

    @property
    def is_numeric(self) -> bool:
        return self.field_type in (FieldType.INTEGER, FieldType.DECIMAL)


@dataclass(frozen=True)
class RequiredColumn:
    """
    One column that must be present for a file to match a schema.
    """

    field: str
    variants: tuple[str, ...]


@dataclass(frozen=True)
class SchemaDefinition:
    """
    Detection contract for one schema kind.
    """

    kind: str
    required_columns: tuple[RequiredColumn, ...]
    expected_column_count: int
    natural_key: tuple[str, ...]


def _string(
    name: str,
    column: str,
    *variants: str,
    max_length: int,
    required: bool = False,
) -> FieldSpec:
    return FieldSpec(
        name=name,
        column=column,
        field_type=FieldType.STRING,
        variants=variants,
        required=required,
        max_length=max_length,
    )


def _integer(
    name: str,
    column: str,
    *variants: str,
    on_absent: str = OnAbsent.ZERO,
    required: bool = False,
    digits_only: bool = False,
) -> FieldSpec:
    return FieldSpec(
        name=name,
        column=column,
        field_type=FieldType.INTEGER,
        variants=variants,
        on_absent=on_absent,
        required=required,
        non_negative=True,
        digits_only=digits_only,
    )


def _decimal(
    name: str,
    column: str,
    *variants: str,
    precision: int,
    scale: int,
    on_absent: str = OnAbsent.ZERO,
    non_negative: bool = True,
) -> FieldSpec:
    return FieldSpec(
        name=name,
        column=column,
        field_type=FieldType.DECIMAL,
        variants=variants,
        on_absent=on_absent,
        non_negative=non_negative,
        precision=precision,
        scale=scale,
    )


def _date(name: str, column: str, *variants: str, required: bool = False) -> FieldSpec:
    return FieldSpec(
        name=name,
        column=column,
        field_type=FieldType.DATE,
        variants=variants,
        on_absent=OnAbsent.NULL,
        required=required,
    )


def _boolean(name: str, column: str, *variants: str) -> FieldSpec:
    return FieldSpec(
        name=name,
        column=column,
        field_type=FieldType.BOOLEAN,
        variants=variants,
    )


TRAFFIC_REPORT_FIELDS: tuple[FieldSpec, ...] = (
    _date("date", "date", "Date", required=True),
    _integer(
        "foreignBrandId",
        "foreign_brand_id",
        "Foreign Brand ID",
        "foreign_brand_id",
        on_absent=OnAbsent.NULL,
        required=True,
        digits_only=True,
    ),
    _integer(
        "foreignPartnerId",
        "foreign_partner_id",
        "Foreign Partner ID",
        "foreign_partner_id",
        on_absent=OnAbsent.NULL,
        required=True,
        digits_only=True,
    ),
    _integer(
        "foreignCampaignId",
        "foreign_campaign_id",
        "Foreign Campaign ID",
        "foreign_campaign_id",
        on_absent=OnAbsent.NULL,
        required=True,
        digits_only=True,
    ),
    _integer(
        "foreignLandingId",
        "foreign_landing_id",
        "Foreign Landing ID",
        "foreign_landing_id",
        on_absent=OnAbsent.NULL,
        required=True,
        digits_only=True,
    ),
    # Blank in most real exports; never required.
    _string("trafficSource", "traffic_source", "Traffic Source", "traffic_source", max_length=100),
    _string("deviceType", "device_type", "Device Type", "device_type", max_length=50, required=True),
    _string(
        "userAgentFamily",
        "user_agent_family",
        "User Agent Family",
        "user_agent_family",
        max_length=255,
        required=True,
    ),
    _string("osFamily", "os_family", "OS Family", "os_family", max_length=100, required=True),
    _string("country", "country", "Country", max_length=10, required=True),
    _integer("allClicks", "all_clicks", "All Clicks", "all_clicks"),
    _integer("uniqueClicks", "unique_clicks", "Unique Clicks", "unique_clicks"),
    _integer(
        "registrationsCount",
        "registrations_count",
        "Registrations Count",
        "registrations_count",
    ),
    _integer("ftdCount", "ftd_count", "FTD Count", "ftd_count"),
    _integer("depositsCount", "deposits_count", "Deposits Count", "deposits_count"),
    _decimal("cr", "cr", "CR", precision=12, scale=4),
    _decimal("cftd", "cftd", "CFTD", precision=12, scale=4),
    _decimal("cd", "cd", "CD", precision=12, scale=4),
    _decimal("rftd", "rftd", "RFTD", precision=12, scale=4),
)

PLAYERS_DATA_FIELDS: tuple[FieldSpec, ...] = (
    _integer("playerId", "player_id", "Player ID", "player_id", on_absent=OnAbsent.NULL, digits_only=True),
    _integer(
        "originalPlayerId",
        "original_player_id",
        "Original player ID",
        "original_player_id",
        on_absent=OnAbsent.NULL,
        digits_only=True,
    ),
    _date("signUpDate", "sign_up_date", "Sign up date", "sign_up_date"),
    _date("firstDepositDate", "first_deposit_date", "First deposit date", "first_deposit_date"),
    _integer("partnerId", "partner_id", "Partner ID", "partner_id", on_absent=OnAbsent.NULL, digits_only=True),
    _string("companyName", "company_name", "Company name", "company_name", max_length=255, required=True),
    _string("partnerTags", "partner_tags", "Partner tags", "partner_tags", max_length=500, required=True),
    _integer("campaignId", "campaign_id", "Campaign ID", "campaign_id", on_absent=OnAbsent.NULL, digits_only=True),
    _string("campaignName", "campaign_name", "Campaign name", "campaign_name", max_length=255, required=True),
    _integer("promoId", "promo_id", "Promo ID", "promo_id", on_absent=OnAbsent.NULL, digits_only=True),
    _string("promoCode", "promo_code", "Promo code", "promo_code", max_length=100, required=True),
    _string("playerCountry", "player_country", "Player country", "player_country", max_length=10, required=True),
    _string("tagClickid", "tag_clickid", "Tag: clickid", "tag_clickid", max_length=255),
    _string("tagOs", "tag_os", "Tag: os", "tag_os", max_length=100),
    _string("tagSource", "tag_source", "Tag: source", "tag_source", max_length=100),
    _string("tagSub2", "tag_sub2", "Tag: sub2", "tag_sub2", max_length=100),
    _string("tagWebId", "tag_web_id", "Tag: webID", "tag_web_id", max_length=100),
    _date("date", "date", "Date"),
    _boolean("prequalified", "prequalified", "Prequalified"),
    _boolean("duplicate", "duplicate", "Duplicate"),
    _boolean("selfExcluded", "self_excluded", "Self-excluded", "self_excluded"),
    _boolean("disabled", "disabled", "Disabled"),
    _string("currency", "currency", "Currency", max_length=10, required=True),
    _integer("ftdCount", "ftd_count", "FTD count", "ftd_count", on_absent=OnAbsent.NULL),
    _decimal(
        "ftdSum",
        "ftd_sum",
        "FTD sum",
        "ftd_sum",
        precision=15,
        scale=2,
        on_absent=OnAbsent.NULL,
    ),
    _integer("depositsCount", "deposits_count", "Deposits count", "deposits_count", on_absent=OnAbsent.NULL),
    _decimal(
        "depositsSum",
        "deposits_sum",
        "Deposits sum",
        "deposits_sum",
        precision=15,
        scale=2,
        on_absent=OnAbsent.NULL,
    ),
    _integer("cashoutsCount", "cashouts_count", "Cashouts count", "cashouts_count", on_absent=OnAbsent.NULL),
    _decimal(
        "cashoutsSum",
        "cashouts_sum",
        "Cashouts sum",
        "cashouts_sum",
        precision=15,
        scale=2,
        on_absent=OnAbsent.NULL,
    ),
    _integer(
        "casinoBetsCount",
        "casino_bets_count",
        "Casino bets count",
        "casino_bets_count",
        on_absent=OnAbsent.NULL,
    ),
    # NGR and fixed payouts can legitimately be negative.
    _decimal(
        "casinoRealNgr",
        "casino_real_ngr",
        "Casino Real NGR",
        "casino_real_ngr",
        precision=15,
        scale=2,
        on_absent=OnAbsent.NULL,
        non_negative=False,
    ),
    _decimal(
        "fixedPerPlayer",
        "fixed_per_player",
        "Fixed per player",
        "fixed_per_player",
        precision=15,
        scale=2,
        on_absent=OnAbsent.NULL,
        non_negative=False,
    ),
    _decimal(
        "casinoBetsSum",
        "casino_bets_sum",
        "Casino bets sum",
        "casino_bets_sum",
        precision=15,
        scale=2,
        on_absent=OnAbsent.NULL,
    ),
    _decimal(
        "casinoWinsSum",
        "casino_wins_sum",
        "Casino wins sum",
        "casino_wins_sum",
        precision=15,
        scale=2,
        on_absent=OnAbsent.NULL,
    ),
)

FIELD_TABLES: Mapping[str, tuple[FieldSpec, ...]] = MappingProxyType(
    {
        SchemaKind.TRAFFIC_REPORT: TRAFFIC_REPORT_FIELDS,
        SchemaKind.PLAYERS_DATA: PLAYERS_DATA_FIELDS,
    }
)


def get_field_specs(kind: str) -> tuple[FieldSpec, ...]:
    """
    Return the ordered field table for one schema kind.
    """

    try:
        return FIELD_TABLES[kind]
    except KeyError as exc:
        raise UnknownSchemaKindError(kind) from exc


def header_variants(spec: FieldSpec) -> tuple[str, ...]:
    """
    All acceptable header spellings for a field, canonical name first.
    """

    seen: dict[str, None] = {spec.name: None}
    for variant in spec.variants:
        seen.setdefault(variant, None)
    return tuple(seen)


def _required_columns(kind: str, fields: tuple[str, ...]) -> tuple[RequiredColumn, ...]:
    specs = {spec.name: spec for spec in get_field_specs(kind)}
    return tuple(
        RequiredColumn(field=name, variants=header_variants(specs[name]))
        for name in fields
    )


SCHEMA_DEFINITIONS: tuple[SchemaDefinition, ...] = (
    SchemaDefinition(
        kind=SchemaKind.TRAFFIC_REPORT,
        required_columns=_required_columns(
            SchemaKind.TRAFFIC_REPORT,
            (
                "date",
                "foreignBrandId",
                "foreignPartnerId",
                "foreignCampaignId",
                "allClicks",
                "uniqueClicks",
            ),
        ),
        expected_column_count=19,
        natural_key=(
            "date",
            "foreignBrandId",
            "foreignPartnerId",
            "foreignCampaignId",
            "foreignLandingId",
            "trafficSource",
            "deviceType",
            "userAgentFamily",
            "osFamily",
            "country",
        ),
    ),
    SchemaDefinition(
        kind=SchemaKind.PLAYERS_DATA,
        required_columns=_required_columns(
            SchemaKind.PLAYERS_DATA,
            (
                "playerId",
                "originalPlayerId",
                "partnerId",
                "ftdSum",
                "depositsSum",
            ),
        ),
        # One more than the stored fields: the partner e-mail column is dropped.
        expected_column_count=35,
        natural_key=(
            "playerId",
            "originalPlayerId",
            "partnerId",
            "campaignId",
            "date",
        ),
    ),
)


def get_schema_definition(kind: str) -> SchemaDefinition:
    for definition in SCHEMA_DEFINITIONS:
        if definition.kind == kind:
            return definition
    raise UnknownSchemaKindError(kind)
