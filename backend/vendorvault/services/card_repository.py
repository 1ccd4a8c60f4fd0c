"""
Card repository for the signed-in user's inventory.

Owns the mapping between CardRecord and its stored document, the validation
and derivation rules, the per-user cost aggregate and the in-memory mirror
the presentation layer reads from.
"""
import logging
from datetime import datetime
from typing import Any, Callable, Optional

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError as SchemaError
from pymongo.errors import PyMongoError

from vendorvault.core.exceptions import (
    AuthError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from vendorvault.database.databases import vault_db
from vendorvault.database.databases.vault_db import CardFields, TotalsFields
from vendorvault.models.card import (
    CardRecord,
    Condition,
    ItemType,
    SEARCH_SENTINEL,
    extract_set_number,
    parse_acquisition_price,
    search_key,
    utc_now_millis,
)
from vendorvault.models.user import UserContext
from vendorvault.schemas.card import CardEdit, CardFormInput, InventorySummary

logger = logging.getLogger(__name__)

_CONDITIONS = {c.value for c in Condition}
_ITEM_TYPES = {t.value for t in ItemType}


class CardRepository:
    """Repository for card CRUD, prefix search and inventory totals."""

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        clock: Callable[[], datetime] = utc_now_millis,
    ):
        """Initialize with the vault database and an optional clock for date_added."""
        self.db = db
        self.cards = db[vault_db.Collections.CARDS]
        self.totals = db[vault_db.Collections.USER_TOTALS]
        self._clock = clock
        # user_id -> cards, newest first
        self._mirrors: dict[str, list[CardRecord]] = {}

    # ==================== Mirror ====================

    def mirror(self, ctx: UserContext) -> list[CardRecord]:
        """Cards currently held in memory for the user, newest first."""
        if not ctx.is_authenticated:
            return []
        return list(self._mirrors.get(ctx.user_id, []))

    # ==================== Card CRUD ====================

    async def create_card(self, ctx: UserContext, form: CardFormInput) -> CardRecord:
        """
        Validate and store a new card.

        Args:
            ctx: Session the card is created for
            form: Card form as entered

        Returns:
            Stored CardRecord including its new ID

        Raises:
            AuthError: If no user is signed in
            ValidationError: If required fields are missing or the price is malformed
            StoreError: If the store rejects a write
        """
        user_id = self._require_user(ctx)
        fields = self._validate_form(form)
        record = CardRecord(**fields, date_added=self._clock())

        try:
            result = await self.cards.insert_one(record.to_document(user_id))
        except PyMongoError as e:
            raise StoreError(f"Failed to save card: {e}") from e

        record = record.model_copy(update={"id": str(result.inserted_id)})

        try:
            await self._adjust_totals(user_id, record.acquisition_price)
        except PyMongoError as e:
            await self._undo(
                self.cards.delete_one({"_id": result.inserted_id}),
                f"remove card {record.id} after failed totals update",
            )
            raise StoreError(f"Failed to save card: {e}") from e

        self._insert_into_mirror(user_id, record)
        logger.info(f"Created card {record.id} ({record.pokemon_name}) for user {user_id}")
        return record

    async def get_card(self, ctx: UserContext, card_id: str) -> CardRecord:
        """
        Get a card by ID (must belong to the user).

        Raises:
            AuthError: If no user is signed in
            NotFoundError: If no such card exists for the user
            StoreError: If the store query fails
        """
        user_id = self._require_user(ctx)
        oid = self._object_id(card_id)

        try:
            doc = await self.cards.find_one({"_id": oid, CardFields.USER_ID: user_id})
        except PyMongoError as e:
            raise StoreError(f"Failed to load card: {e}") from e

        if not doc:
            raise NotFoundError(f"Card not found: {card_id}")
        return CardRecord.from_document(doc)

    async def update_card(self, ctx: UserContext, edit: CardEdit) -> CardRecord:
        """
        Replace every field of a stored card except its ID and date_added.

        The completeness flag is recomputed and the mirror reloaded.

        Raises:
            AuthError: If no user is signed in
            NotFoundError: If edit.id is missing or matches no card of the user
            ValidationError: If required fields are missing or the price is malformed
            StoreError: If the store rejects a write
        """
        user_id = self._require_user(ctx)
        if not edit.id:
            raise NotFoundError("Card ID is missing")
        oid = self._object_id(edit.id)
        fields = self._validate_form(edit)

        try:
            existing = await self.cards.find_one({"_id": oid, CardFields.USER_ID: user_id})
        except PyMongoError as e:
            raise StoreError(f"Failed to update card: {e}") from e

        if not existing:
            raise NotFoundError(f"Card not found: {edit.id}")

        previous = CardRecord.from_document(existing)
        record = CardRecord(id=previous.id, date_added=previous.date_added, **fields)

        try:
            result = await self.cards.replace_one(
                {"_id": oid, CardFields.USER_ID: user_id},
                record.to_document(user_id),
            )
        except PyMongoError as e:
            raise StoreError(f"Failed to update card: {e}") from e

        if result.matched_count == 0:
            raise NotFoundError(f"Card not found: {edit.id}")

        delta = record.acquisition_price - previous.acquisition_price
        if delta:
            try:
                await self._adjust_totals(user_id, delta)
            except PyMongoError as e:
                await self._undo(
                    self.cards.replace_one({"_id": oid}, existing),
                    f"restore card {record.id} after failed totals update",
                )
                raise StoreError(f"Failed to update card: {e}") from e

        logger.info(f"Updated card {record.id} for user {user_id}")

        try:
            await self.list_cards(ctx)
        except StoreError as e:
            # The write is committed; keep the mirror usable until the next reload
            logger.warning(f"Reload after update failed, patching mirror instead: {e}")
            self._remove_from_mirror(user_id, record.id)
            self._insert_into_mirror(user_id, record)

        return record

    async def delete_card(self, ctx: UserContext, card_id: str) -> None:
        """
        Delete a card, then drop it from the mirror.

        Raises:
            AuthError: If no user is signed in
            NotFoundError: If the store has no such card for the user
            StoreError: If the store rejects the delete
        """
        user_id = self._require_user(ctx)

        try:
            oid = self._object_id(card_id)
        except NotFoundError:
            self._remove_from_mirror(user_id, card_id)
            raise

        try:
            doc = await self.cards.find_one_and_delete({"_id": oid, CardFields.USER_ID: user_id})
        except PyMongoError as e:
            raise StoreError(f"Failed to delete card: {e}") from e

        removed = self._remove_from_mirror(user_id, card_id)

        if doc is None:
            raise NotFoundError(f"Card not found: {card_id}")

        try:
            await self._adjust_totals(user_id, -doc[CardFields.ACQUISITION_PRICE])
        except PyMongoError as e:
            await self._undo(
                self.cards.insert_one(doc),
                f"restore card {card_id} after failed totals update",
            )
            if removed is not None:
                self._insert_into_mirror(user_id, removed)
            raise StoreError(f"Failed to delete card: {e}") from e

        logger.info(f"Deleted card {card_id} for user {user_id}")

    async def list_cards(self, ctx: UserContext) -> list[CardRecord]:
        """
        Load all cards of the user, newest first, and refresh the mirror.

        Returns an empty list when no user is signed in.

        Raises:
            StoreError: If the store query fails
        """
        if not ctx.is_authenticated:
            return []

        try:
            cursor = self.cards.find({CardFields.USER_ID: ctx.user_id}).sort(
                [(CardFields.DATE_ADDED, -1), ("_id", -1)]
            )
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise StoreError(f"Failed to load cards: {e}") from e

        records = self._decode(docs)
        self._mirrors[ctx.user_id] = records
        return list(records)

    async def search_cards(self, ctx: UserContext, text: str) -> list[CardRecord]:
        """
        Prefix search on the Pokémon name.

        Matches names starting with `text` (case-insensitive), never names
        merely containing it. Blank text reloads the full list.

        Raises:
            StoreError: If the store query fails
        """
        if not (text or "").strip():
            return await self.list_cards(ctx)
        if not ctx.is_authenticated:
            return []

        prefix = search_key(text)
        query = {
            CardFields.USER_ID: ctx.user_id,
            CardFields.POKEMON_NAME_KEY: {
                "$gte": prefix,
                "$lt": prefix + SEARCH_SENTINEL,
            },
        }

        try:
            cursor = self.cards.find(query).sort(CardFields.POKEMON_NAME_KEY, 1)
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise StoreError(f"Failed to search cards: {e}") from e

        return self._decode(docs)

    # ==================== Totals ====================

    async def get_summary(self, ctx: UserContext) -> InventorySummary:
        """
        Calculate a financial summary of the user's inventory.

        Raises:
            StoreError: If the store query fails
        """
        if not ctx.is_authenticated:
            return InventorySummary()

        try:
            totals = await self.totals.find_one({"_id": ctx.user_id}) or {}
            docs = await self.cards.find({CardFields.USER_ID: ctx.user_id}).to_list(length=None)
        except PyMongoError as e:
            raise StoreError(f"Failed to load summary: {e}") from e

        records = self._decode(docs)
        cost_by_item_type: dict[str, float] = {}
        count_by_condition: dict[str, int] = {}
        for record in records:
            item_type = record.item_type or ItemType.OTHER.value
            cost_by_item_type[item_type] = cost_by_item_type.get(item_type, 0.0) + record.acquisition_price
            if record.condition:
                count_by_condition[record.condition] = count_by_condition.get(record.condition, 0) + 1

        complete = sum(1 for r in records if r.is_complete)
        return InventorySummary(
            total_cards=len(records),
            complete_cards=complete,
            incomplete_cards=len(records) - complete,
            total_card_cost=totals.get(TotalsFields.TOTAL_CARD_COST, 0.0),
            total_revenue=totals.get(TotalsFields.TOTAL_REVENUE, 0.0),
            cost=totals.get(TotalsFields.COST, 0.0),
            cost_by_item_type=cost_by_item_type,
            count_by_condition=count_by_condition,
        )

    async def _adjust_totals(self, user_id: str, amount: float) -> None:
        """Move the user's cost aggregate by `amount` (negative to decrease)."""
        await self.totals.update_one(
            {"_id": user_id},
            {
                "$inc": {
                    TotalsFields.TOTAL_CARD_COST: amount,
                    TotalsFields.COST: amount,
                },
                "$setOnInsert": {
                    TotalsFields.TOTAL_REVENUE: 0.0,
                },
            },
            upsert=True,
        )

    # ==================== Helper Methods ====================

    def _validate_form(self, form: CardFormInput) -> dict[str, Any]:
        """
        Check a form and return normalized CardRecord fields.

        Raises:
            ValidationError: With one entry per offending field
        """
        errors: dict[str, str] = {}

        pokemon_name = form.pokemon_name.strip()
        set_name = form.set_name.strip()
        condition = form.condition.strip()
        item_type = form.item_type.strip()

        if not pokemon_name:
            errors["pokemon_name"] = "required"
        if not set_name:
            errors["set_name"] = "required"
        if condition and condition not in _CONDITIONS:
            errors["condition"] = f"must be one of {sorted(_CONDITIONS)}"
        if item_type and item_type not in _ITEM_TYPES:
            errors["item_type"] = f"must be one of {sorted(_ITEM_TYPES)}"

        set_number = 0
        try:
            set_number = extract_set_number(form.set_number)
        except ValidationError as e:
            errors.update(e.errors)

        price = None
        try:
            price = parse_acquisition_price(form.acquisition_price)
        except ValidationError as e:
            errors.update(e.errors)

        if errors:
            details = ", ".join(f"{k}: {v}" for k, v in errors.items())
            raise ValidationError(f"Invalid card ({details})", errors)

        return {
            "card_name": form.card_name.strip(),
            "pokemon_name": pokemon_name,
            "set_name": set_name,
            "set_number": set_number,
            "condition": condition,
            "language": form.language.strip(),
            "item_type": item_type,
            "acquisition_price": price,
            "card_image_url": (form.card_image_url or "").strip() or None,
        }

    def _require_user(self, ctx: UserContext) -> str:
        if not ctx.is_authenticated:
            raise AuthError("Sign in to manage cards")
        return ctx.user_id

    def _object_id(self, card_id: Optional[str]) -> ObjectId:
        try:
            return ObjectId(card_id)
        except (InvalidId, TypeError):
            raise NotFoundError(f"Card not found: {card_id}")

    def _decode(self, docs: list[dict]) -> list[CardRecord]:
        """Convert documents to CardRecords, skipping any that no longer fit the model."""
        records = []
        for doc in docs:
            try:
                records.append(CardRecord.from_document(doc))
            except (KeyError, SchemaError) as e:
                logger.warning(f"Skipping unreadable card document {doc.get('_id')}: {e}")
        return records

    def _insert_into_mirror(self, user_id: str, record: CardRecord) -> None:
        cards = self._mirrors.setdefault(user_id, [])
        index = next(
            (i for i, c in enumerate(cards) if c.date_added <= record.date_added),
            len(cards),
        )
        cards.insert(index, record)

    def _remove_from_mirror(self, user_id: str, card_id: str) -> Optional[CardRecord]:
        cards = self._mirrors.get(user_id, [])
        for i, card in enumerate(cards):
            if card.id == card_id:
                return cards.pop(i)
        return None

    async def _undo(self, operation, description: str) -> None:
        """Run a compensating write; a failure here is logged, the original error wins."""
        try:
            await operation
        except PyMongoError as e:
            logger.error(f"Could not {description}: {e}")
