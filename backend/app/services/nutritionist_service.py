"""
Nutritionist chat: household context for the model, suggested prompts and
the actions a reply can offer to apply.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from pydantic import ValidationError
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from app.config import settings
from app.dependencies import get_owned
from app.models.chat_history import Conversation, Message
from app.models.inventory import InventoryItem
from app.models.shopping_list import ShoppingList
from app.models.staple import Staple
from app.models.user import FamilyProfile, User
from app.schemas import ActionTarget, ProfileUpdate, ShoppingListItemCreate, StapleCreate
from app.services import llm_service
from app.services.meal_plan_service import meal_plan_service
from app.services.nutrition_service import plan_nutrition
from app.services.shopping_list_service import shopping_list_service
from app.services.staples_service import enrich_staple

logger = logging.getLogger(__name__)

FALLBACK_REPLY = (
    "I'm having trouble reaching the nutrition assistant right now. "
    "Please try again in a moment. In the meantime, aim for a vegetable with every "
    "meal and use up what is expiring in your fridge first."
)

HISTORY_LIMIT = 10

_TARGET_FIELDS = (
    "daily_calorie_target",
    "daily_protein_target",
    "daily_carbs_target",
    "daily_fat_target",
)


def _validation_message(exc: ValidationError) -> str:
    first = exc.errors()[0]
    message = str(first.get("msg", "Invalid action payload"))
    if message.startswith("Value error, "):
        return message[len("Value error, "):]
    location = [str(part) for part in first.get("loc", ())]
    return f"{location[-1]}: {message}" if location else message


class NutritionistService:
    def conversation_title(self, message: str) -> str:
        title = message.strip().splitlines()[0] if message.strip() else "New conversation"
        return title if len(title) <= 60 else title[:57] + "..."

    def build_context(
        self, db: Session, user: User, profile: Optional[FamilyProfile], today: Optional[date] = None
    ) -> Dict[str, Any]:
        """Profile targets, this week's plan nutrition and inventory that is about to expire."""
        today = today or date.today()
        context: Dict[str, Any] = {}

        if profile is not None:
            context["profile"] = {
                "name": profile.profile_name,
                "age": profile.age,
                "dailyCalorieTarget": profile.daily_calorie_target,
                "dailyProteinTarget": profile.daily_protein_target,
                "dailyCarbsTarget": profile.daily_carbs_target,
                "dailyFatTarget": profile.daily_fat_target,
                "dietaryPreferences": profile.dietary_preferences or [],
                "allergies": profile.allergies or [],
            }

        plan = meal_plan_service.current_week_plan(db, user, today)
        if plan is not None:
            nutrition = plan_nutrition(plan, profile)
            context["mealPlan"] = {
                "weekStartDate": plan.week_start_date.isoformat(),
                "meals": [
                    f"{m.day_of_week} {m.meal_type}: {m.recipe_name}" for m in plan.meals
                ],
                "dailyAverage": nutrition["dailyAverage"],
                "comparison": nutrition.get("comparison"),
            }

        horizon = today + timedelta(days=settings.EXPIRING_SOON_DAYS)
        expiring = (
            db.query(InventoryItem)
            .filter(
                InventoryItem.user_id == user.id,
                InventoryItem.is_active.is_(True),
                InventoryItem.expiry_date.isnot(None),
                InventoryItem.expiry_date <= horizon,
            )
            .order_by(InventoryItem.expiry_date)
            .limit(10)
            .all()
        )
        if expiring:
            context["expiringInventory"] = [
                f"{i.item_name} ({i.quantity:g} {i.unit}, expires {i.expiry_date.isoformat()})"
                for i in expiring
            ]
        return context

    def chat(
        self,
        db: Session,
        user: User,
        message: str,
        conversation_id: Optional[int] = None,
        profile_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Store the user message, ask the model and store its reply.

        When the model is unavailable a fixed fallback reply is stored instead.
        """
        profile = None
        if profile_id is not None:
            profile = get_owned(db, FamilyProfile, profile_id, user, "Profile")

        if conversation_id is not None:
            conversation = get_owned(db, Conversation, conversation_id, user, "Conversation")
            if profile is None and conversation.profile_id is not None:
                profile = db.query(FamilyProfile).filter(FamilyProfile.id == conversation.profile_id).first()
        else:
            conversation = Conversation(
                user_id=user.id,
                profile_id=profile.id if profile else None,
                title=self.conversation_title(message),
            )
            db.add(conversation)
            db.flush()

        history = [
            {"role": m.role, "content": m.content}
            for m in conversation.messages[-HISTORY_LIMIT:]
        ]
        db.add(Message(conversation_id=conversation.id, role="user", content=message))

        context = self.build_context(db, user, profile)
        reply = llm_service.nutritionist_reply(message, history=history, context=context)
        used_fallback = reply is None
        if used_fallback:
            logger.warning(f"Nutritionist reply unavailable for conversation {conversation.id}, using fallback")
            reply = FALLBACK_REPLY

        answer = Message(
            conversation_id=conversation.id,
            role="assistant",
            content=reply,
            context_used=bool(context),
        )
        db.add(answer)
        conversation.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(answer)
        return {"conversation_id": conversation.id, "message": answer, "used_fallback": used_fallback}

    def suggested_prompts(self, db: Session, user: User, profile: Optional[FamilyProfile]) -> List[str]:
        prompts = []
        has_targets = bool(
            profile and profile.daily_calorie_target and profile.daily_protein_target
        )
        if not has_targets:
            prompts.append("Help me set up my macro targets")

        if meal_plan_service.current_week_plan(db, user) is not None:
            prompts.append("How balanced is this week's meal plan?")
        else:
            prompts.append("Suggest dinners for this week")

        expiring = self.build_context(db, user, None).get("expiringInventory")
        if expiring:
            prompts.append("What can I cook with what's expiring soon?")

        prompts.extend(
            [
                "Suggest high-protein recipes",
                "I need breakfast ideas",
                "Review my staples list",
            ]
        )
        if has_targets:
            prompts.append("Are my macros still right?")
        return prompts[:4]

    # --- Actions ---
    def apply_action(self, db: Session, user: User, action_type: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        handlers = {
            "add_to_shopping_list": self._add_to_shopping_list,
            "add_to_staples": self._add_to_staples,
            "update_profile_targets": self._update_profile_targets,
        }
        try:
            result = handlers[action_type](db, user, payload)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=_validation_message(e))
        logger.info(f"Applied nutritionist action {action_type} for user {user.id}")
        return result

    def _target_list(self, db: Session, user: User, list_id: Optional[int]) -> ShoppingList:
        if list_id is not None:
            return get_owned(db, ShoppingList, list_id, user, "Shopping list")
        draft = (
            db.query(ShoppingList)
            .filter(ShoppingList.user_id == user.id, ShoppingList.status == "Draft")
            .order_by(ShoppingList.updated_at.desc(), ShoppingList.id.desc())
            .first()
        )
        return draft or shopping_list_service.create_list(db, user)

    def _add_to_shopping_list(self, db: Session, user: User, payload: Dict[str, Any]) -> Dict[str, Any]:
        raw_items = payload.get("items") or [payload]
        items_in = [ShoppingListItemCreate.model_validate(i) for i in raw_items]
        target = ActionTarget.model_validate(payload)
        shopping_list = self._target_list(db, user, target.shopping_list_id)
        created = shopping_list_service.add_items(db, user, shopping_list, items_in)
        return {
            "success": True,
            "message": f"Added {len(created)} item(s) to {shopping_list.name}",
            "data": {"shoppingListId": shopping_list.id, "itemIds": [i.id for i in created]},
        }

    def _add_to_staples(self, db: Session, user: User, payload: Dict[str, Any]) -> Dict[str, Any]:
        staple_in = StapleCreate.model_validate(payload)
        staple = Staple(user_id=user.id, **staple_in.model_dump())
        db.add(staple)
        db.commit()
        db.refresh(staple)
        enriched = enrich_staple(staple)
        return {
            "success": True,
            "message": f"Added {staple.item_name} to staples",
            "data": {"stapleId": staple.id, "nextDueDate": enriched["next_due_date"]},
        }

    def _update_profile_targets(self, db: Session, user: User, payload: Dict[str, Any]) -> Dict[str, Any]:
        target = ActionTarget.model_validate(payload)
        if target.profile_id is None:
            raise HTTPException(status_code=400, detail="profileId is required")
        profile = get_owned(db, FamilyProfile, target.profile_id, user, "Profile")

        update = ProfileUpdate.model_validate(payload)
        changes = {
            k: v for k, v in update.model_dump(exclude_unset=True).items() if k in _TARGET_FIELDS
        }
        if not changes:
            raise HTTPException(status_code=400, detail="No targets to update")
        for field, value in changes.items():
            setattr(profile, field, value)
        profile.updated_at = datetime.utcnow()
        db.commit()
        return {
            "success": True,
            "message": f"Updated targets for {profile.profile_name}",
            "data": {"profileId": profile.id, **{to_camel(k): getattr(profile, k) for k in _TARGET_FIELDS}},
        }


nutritionist_service = NutritionistService()
