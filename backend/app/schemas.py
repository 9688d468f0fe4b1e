from typing import Any, Dict, List, Optional
from datetime import datetime, date
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from app.models.meal_plan import DAYS_OF_WEEK, MEAL_TYPES, MEAL_PLAN_STATUSES
from app.models.inventory import STORAGE_LOCATIONS
from app.models.shopping_list import LIST_STATUSES, ITEM_PRIORITIES
from app.services.staples_service import FREQUENCY_DAYS, parse_frequency

NUTRITIONIST_ACTIONS = ("add_to_shopping_list", "add_to_staples", "update_profile_targets")


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys; snake_case is accepted on input too."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _one_of(value: Optional[str], allowed, label: str) -> Optional[str]:
    if value is not None and value not in allowed:
        raise ValueError(f"{label} must be one of: {', '.join(allowed)}")
    return value


def _frequency(value: Optional[str]) -> Optional[str]:
    """Frequency key from a key or a label such as "Every 2 weeks"."""
    if value is None:
        return None
    parsed = parse_frequency(value)
    if parsed is None:
        raise ValueError(f"Frequency must be one of: {', '.join(FREQUENCY_DAYS)}")
    return parsed


# --- Auth ---
class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)


class UserResponse(CamelModel):
    id: int
    email: str
    is_active: bool = True
    created_at: Optional[datetime] = None


class Token(BaseModel):
    access_token: str
    token_type: str


# --- Family profiles ---
class ProfileBase(CamelModel):
    profile_name: str = Field(..., min_length=1, max_length=100)
    age: Optional[int] = Field(None, ge=0, le=120)
    is_main_user: bool = False
    daily_calorie_target: Optional[float] = Field(None, ge=0)
    daily_protein_target: Optional[float] = Field(None, ge=0)
    daily_carbs_target: Optional[float] = Field(None, ge=0)
    daily_fat_target: Optional[float] = Field(None, ge=0)
    dietary_preferences: List[str] = []
    allergies: List[str] = []


class ProfileCreate(ProfileBase):
    pass


class ProfileUpdate(CamelModel):
    profile_name: Optional[str] = Field(None, min_length=1, max_length=100)
    age: Optional[int] = Field(None, ge=0, le=120)
    is_main_user: Optional[bool] = None
    daily_calorie_target: Optional[float] = Field(None, ge=0)
    daily_protein_target: Optional[float] = Field(None, ge=0)
    daily_carbs_target: Optional[float] = Field(None, ge=0)
    daily_fat_target: Optional[float] = Field(None, ge=0)
    dietary_preferences: Optional[List[str]] = None
    allergies: Optional[List[str]] = None


class ProfileResponse(ProfileBase):
    id: int
    created_at: datetime
    updated_at: datetime


# --- Recipes ---
class IngredientBase(CamelModel):
    ingredient_name: str = Field(..., min_length=1, max_length=200)
    quantity: float = Field(..., ge=0)
    unit: str = Field(..., min_length=1, max_length=50)
    category: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=500)


class IngredientResponse(IngredientBase):
    id: int


class RecipeBase(CamelModel):
    recipe_name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    servings: int = Field(4, ge=1, le=100)
    prep_time_minutes: Optional[int] = Field(None, ge=0)
    cook_time_minutes: Optional[int] = Field(None, ge=0)
    meal_type: Optional[str] = None
    cuisine: Optional[str] = Field(None, max_length=100)
    instructions: Optional[str] = None
    calories_per_serving: Optional[float] = Field(None, ge=0)
    protein_per_serving: Optional[float] = Field(None, ge=0)
    carbs_per_serving: Optional[float] = Field(None, ge=0)
    fat_per_serving: Optional[float] = Field(None, ge=0)
    is_favorite: bool = False

    @field_validator("meal_type")
    @classmethod
    def check_meal_type(cls, v):
        return _one_of(v, MEAL_TYPES, "Meal type")


class RecipeCreate(RecipeBase):
    ingredients: List[IngredientBase] = []


class RecipeUpdate(CamelModel):
    recipe_name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    servings: Optional[int] = Field(None, ge=1, le=100)
    prep_time_minutes: Optional[int] = Field(None, ge=0)
    cook_time_minutes: Optional[int] = Field(None, ge=0)
    meal_type: Optional[str] = None
    cuisine: Optional[str] = Field(None, max_length=100)
    instructions: Optional[str] = None
    calories_per_serving: Optional[float] = Field(None, ge=0)
    protein_per_serving: Optional[float] = Field(None, ge=0)
    carbs_per_serving: Optional[float] = Field(None, ge=0)
    fat_per_serving: Optional[float] = Field(None, ge=0)
    is_favorite: Optional[bool] = None
    ingredients: Optional[List[IngredientBase]] = None

    @field_validator("meal_type")
    @classmethod
    def check_meal_type(cls, v):
        return _one_of(v, MEAL_TYPES, "Meal type")


class RecipeResponse(RecipeBase):
    id: int
    is_archived: bool
    times_used: int
    ingredients: List[IngredientResponse] = []
    created_at: datetime
    updated_at: datetime


# --- Meal plans ---
class MealBase(CamelModel):
    day_of_week: str
    meal_type: str
    recipe_id: Optional[int] = None
    recipe_name: Optional[str] = Field(None, max_length=200)
    servings: int = Field(4, ge=1, le=50)
    is_leftover: bool = False
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("day_of_week")
    @classmethod
    def check_day(cls, v):
        return _one_of(v, DAYS_OF_WEEK, "Day of week")

    @field_validator("meal_type")
    @classmethod
    def check_meal_type(cls, v):
        return _one_of(v, MEAL_TYPES, "Meal type")

    @model_validator(mode="after")
    def needs_recipe(self):
        if self.recipe_id is None and not self.recipe_name:
            raise ValueError("Each meal needs a recipe")
        return self


class MealResponse(CamelModel):
    id: int
    day_of_week: str
    meal_type: str
    recipe_id: Optional[int] = None
    recipe_name: Optional[str] = None
    servings: Optional[int] = None
    is_leftover: bool
    notes: Optional[str] = None


class MealPlanCreate(CamelModel):
    week_start_date: date
    notes: Optional[str] = Field(None, max_length=1000)
    meals: List[MealBase] = []


class MealPlanUpdate(CamelModel):
    notes: Optional[str] = Field(None, max_length=1000)
    status: Optional[str] = None
    meals: Optional[List[MealBase]] = None

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        return _one_of(v, MEAL_PLAN_STATUSES, "Status")


class MealPlanResponse(CamelModel):
    id: int
    week_start_date: date
    week_end_date: date
    status: str
    notes: Optional[str] = None
    finalized_at: Optional[datetime] = None
    meals: List[MealResponse] = []
    created_at: datetime
    updated_at: datetime


class MealPlanGenerateRequest(CamelModel):
    week_start_date: date
    meal_types: List[str] = ["Dinner"]
    profile_ids: List[int] = []

    @field_validator("meal_types")
    @classmethod
    def check_meal_types(cls, v):
        if not v:
            raise ValueError("Choose at least one meal type")
        for meal_type in v:
            _one_of(meal_type, MEAL_TYPES, "Meal type")
        return v


# --- Inventory ---
class InventoryItemBase(CamelModel):
    item_name: str = Field(..., min_length=1, max_length=200)
    quantity: float = Field(..., ge=0)
    unit: str = Field(..., min_length=1, max_length=50)
    category: Optional[str] = Field(None, max_length=100)
    location: str = "pantry"
    purchase_date: Optional[date] = None
    expiry_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("location")
    @classmethod
    def check_location(cls, v):
        return _one_of(v, STORAGE_LOCATIONS, "Location")


class InventoryItemCreate(InventoryItemBase):
    pass


class InventoryItemUpdate(CamelModel):
    item_name: Optional[str] = Field(None, min_length=1, max_length=200)
    quantity: Optional[float] = Field(None, ge=0)
    unit: Optional[str] = Field(None, min_length=1, max_length=50)
    category: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = None
    purchase_date: Optional[date] = None
    expiry_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None

    @field_validator("location")
    @classmethod
    def check_location(cls, v):
        return _one_of(v, STORAGE_LOCATIONS, "Location")


class InventoryItemResponse(InventoryItemBase):
    id: int
    category: str
    location: Optional[str] = None
    expiry_is_estimated: bool
    is_active: bool
    added_by: str
    days_until_expiry: Optional[int] = None
    expiry_status: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# --- Staples ---
class StapleBase(CamelModel):
    item_name: str = Field(..., min_length=1, max_length=200)
    quantity: float = Field(1.0, gt=0)
    unit: str = Field("piece", min_length=1, max_length=50)
    category: Optional[str] = Field(None, max_length=100)
    frequency: str = "weekly"
    is_active: bool = True
    last_added_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("frequency")
    @classmethod
    def check_frequency(cls, v):
        return _frequency(v)


class StapleCreate(StapleBase):
    pass


class StapleUpdate(CamelModel):
    item_name: Optional[str] = Field(None, min_length=1, max_length=200)
    quantity: Optional[float] = Field(None, gt=0)
    unit: Optional[str] = Field(None, min_length=1, max_length=50)
    category: Optional[str] = Field(None, max_length=100)
    frequency: Optional[str] = None
    is_active: Optional[bool] = None
    last_added_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("frequency")
    @classmethod
    def check_frequency(cls, v):
        return _frequency(v)


class StapleResponse(StapleBase):
    id: int
    next_due_date: Optional[date] = None
    due_status: str
    days_until_due: Optional[int] = None
    created_at: datetime
    updated_at: datetime


# --- Products ---
class ProductBase(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    brand: Optional[str] = Field(None, max_length=100)
    category: Optional[str] = Field(None, max_length=100)
    quantity: Optional[float] = Field(None, ge=0)
    unit: Optional[str] = Field(None, max_length=50)
    calories: Optional[float] = Field(None, ge=0)
    protein: Optional[float] = Field(None, ge=0)
    carbs: Optional[float] = Field(None, ge=0)
    fat: Optional[float] = Field(None, ge=0)


class ProductCreate(ProductBase):
    pass


class ProductUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    brand: Optional[str] = Field(None, max_length=100)
    category: Optional[str] = Field(None, max_length=100)
    quantity: Optional[float] = Field(None, ge=0)
    unit: Optional[str] = Field(None, max_length=50)
    calories: Optional[float] = Field(None, ge=0)
    protein: Optional[float] = Field(None, ge=0)
    carbs: Optional[float] = Field(None, ge=0)
    fat: Optional[float] = Field(None, ge=0)
    is_active: Optional[bool] = None


class ProductResponse(ProductBase):
    id: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ProductToInventoryRequest(CamelModel):
    quantity: Optional[float] = Field(None, ge=0)
    unit: Optional[str] = Field(None, max_length=50)
    location: Optional[str] = None
    expiry_date: Optional[date] = None

    @field_validator("location")
    @classmethod
    def check_location(cls, v):
        return _one_of(v, STORAGE_LOCATIONS, "Location")


class ProductToStaplesRequest(CamelModel):
    frequency: str = "weekly"
    quantity: Optional[float] = Field(None, gt=0)

    @field_validator("frequency")
    @classmethod
    def check_frequency(cls, v):
        return _frequency(v)


# --- Shopping lists ---
class ShoppingListCreate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    notes: Optional[str] = Field(None, max_length=1000)


class ShoppingListUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    notes: Optional[str] = Field(None, max_length=1000)
    category_order: Optional[List[str]] = None
    status: Optional[str] = None

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        return _one_of(v, LIST_STATUSES, "Status")


class ShoppingListItemCreate(CamelModel):
    item_name: str = Field(..., min_length=1, max_length=200)
    quantity: float = Field(1.0, ge=0)
    unit: str = Field("piece", min_length=1, max_length=50)
    category: Optional[str] = Field(None, max_length=100)
    custom_note: Optional[str] = Field(None, max_length=500)
    priority: str = "Medium"

    @field_validator("priority")
    @classmethod
    def check_priority(cls, v):
        return _one_of(v, ITEM_PRIORITIES, "Priority")


class ShoppingListItemUpdate(CamelModel):
    item_name: Optional[str] = Field(None, min_length=1, max_length=200)
    quantity: Optional[float] = Field(None, ge=0)
    unit: Optional[str] = Field(None, min_length=1, max_length=50)
    category: Optional[str] = Field(None, max_length=100)
    custom_note: Optional[str] = Field(None, max_length=500)
    priority: Optional[str] = None
    is_purchased: Optional[bool] = None
    display_order: Optional[int] = Field(None, ge=0)

    @field_validator("item_name", "quantity", "unit", "priority", "is_purchased", "display_order")
    @classmethod
    def not_null(cls, v, info):
        # Omit a field to leave it unchanged; these columns cannot be cleared
        if v is None:
            raise ValueError(f"{to_camel(info.field_name)} cannot be null")
        return v

    @field_validator("priority")
    @classmethod
    def check_priority(cls, v):
        return _one_of(v, ITEM_PRIORITIES, "Priority")


class ShoppingListItemResponse(CamelModel):
    id: int
    shopping_list_id: int
    item_name: str
    original_item_name: Optional[str] = None
    quantity: float
    unit: str
    category: Optional[str] = None
    source: str
    source_details: List[Dict[str, Any]] = []
    custom_note: Optional[str] = None
    priority: str
    is_purchased: bool
    purchased_at: Optional[datetime] = None
    is_consolidated: bool
    in_inventory: bool
    display_order: int
    created_at: datetime
    updated_at: datetime


class ShoppingListResponse(CamelModel):
    id: int
    name: str
    notes: Optional[str] = None
    status: str
    category_order: List[str] = []
    item_count: int = 0
    unpurchased_count: int = 0
    items: Optional[List[ShoppingListItemResponse]] = None
    items_by_category: Optional[Dict[str, List[ShoppingListItemResponse]]] = None
    meal_plan_ids: List[int] = []
    created_at: datetime
    updated_at: datetime
    finalized_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None


class BatchItemUpdate(CamelModel):
    item_ids: List[int] = Field(..., min_length=1)
    update: ShoppingListItemUpdate


class BatchItemResult(CamelModel):
    id: int
    success: bool
    error: Optional[str] = None


class ItemReorderRequest(CamelModel):
    item_ids: List[int] = Field(..., min_length=1)


# --- Shopping list categories ---
class CategoryCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=50)


class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    display_order: Optional[int] = Field(None, ge=0)


class CategoryResponse(CamelModel):
    id: int
    name: str
    display_order: int
    is_default: bool


class CategoryReorderRequest(CamelModel):
    category_ids: List[int] = Field(..., min_length=1)


class SuggestCategoryRequest(CamelModel):
    item_name: str = Field(..., min_length=1, max_length=200)
    use_ai: bool = Field(False, alias="useAI")


class SuggestCategoryResponse(CamelModel):
    item_name: str
    suggested_category: str
    confidence: str


# --- Deduplication ---
class DeduplicateRequest(CamelModel):
    item_ids: List[int]
    use_ai: bool = Field(False, alias="useAI")

    @field_validator("item_ids")
    @classmethod
    def at_least_two(cls, v):
        if len(v) < 2:
            raise ValueError("At least 2 items required to deduplicate")
        return v


class CombineAllRequest(CamelModel):
    use_ai: bool = Field(False, alias="useAI")


# --- Imports ---
class StapleImportRequest(CamelModel):
    staple_ids: List[int] = Field(..., min_length=1)
    force_add: bool = False


class MealPlanImportRequest(CamelModel):
    meal_plan_id: int
    check_inventory: bool = True
    auto_deduplicate: bool = True
    use_ai: bool = Field(False, alias="useAI")


class ExcludedItemResponse(CamelModel):
    id: int
    item_name: str
    recipe_quantity: float
    recipe_unit: str
    inventory_quantity: float
    inventory_item_id: Optional[int] = None
    added_back_at: Optional[datetime] = None
    added_back_quantity: Optional[float] = None
    created_at: datetime


class AddBackRequest(CamelModel):
    excluded_item_id: int
    quantity: Optional[float] = Field(None, ge=0)


class ConvertToInventoryRequest(CamelModel):
    item_ids: List[int] = Field(..., min_length=1)
    purchase_date: Optional[date] = None
    auto_expiry: bool = True
    auto_category: bool = True
    auto_location: bool = True
    merge_with_existing: bool = True
    remove_from_list: bool = False


# --- Nutritionist ---
class ConversationCreate(CamelModel):
    title: Optional[str] = Field(None, max_length=200)
    profile_id: Optional[int] = None


class MessageResponse(CamelModel):
    id: int
    role: str
    content: str
    timestamp: datetime


class ConversationResponse(CamelModel):
    id: int
    title: Optional[str] = None
    profile_id: Optional[int] = None
    last_message: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ConversationDetailResponse(ConversationResponse):
    messages: List[MessageResponse] = []


class ChatRequest(CamelModel):
    message: str = Field(..., min_length=1, max_length=4000)
    conversation_id: Optional[int] = None
    profile_id: Optional[int] = None


class ChatResponse(CamelModel):
    conversation_id: int
    message: MessageResponse
    used_fallback: bool = False


class ApplyActionRequest(CamelModel):
    type: str
    payload: Dict[str, Any] = {}

    @field_validator("type")
    @classmethod
    def check_type(cls, v):
        return _one_of(v, NUTRITIONIST_ACTIONS, "Action type")


class ActionTarget(CamelModel):
    """Ids an action payload may point at."""
    shopping_list_id: Optional[int] = None
    profile_id: Optional[int] = None


# --- Import responses ---
class StapleImportCandidate(StapleResponse):
    already_imported: bool
    preselected: bool


class StapleCandidatesResponse(CamelModel):
    staples: List[StapleImportCandidate]
    preselected_count: int


class StapleImportResponse(CamelModel):
    imported_count: int
    skipped_count: int
    skipped: List[str] = []
    items: List[ShoppingListItemResponse] = []


class MealPlanImportResponse(CamelModel):
    imported_count: int
    excluded_count: int
    meals_processed: int
    leftover_meals_skipped: int
    duplicates_removed: int
    final_item_count: int
    items: List[ShoppingListItemResponse] = []


class ConvertToInventoryResponse(CamelModel):
    created: int
    merged: int
    errors: List[str] = []
    total: int
