"""Initial schema

Revision ID: 3c1f0a9d2b7e
Revises:
Create Date: 2026-10-18 21:40:12.503118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f0a9d2b7e'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def _user_fk():
    return sa.Column(
        'user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False
    )


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'family_profiles',
        sa.Column('id', sa.Integer(), primary_key=True),
        _user_fk(),
        sa.Column('profile_name', sa.String(), nullable=False),
        sa.Column('age', sa.Integer(), nullable=True),
        sa.Column('is_main_user', sa.Boolean(), nullable=False),
        sa.Column('daily_calorie_target', sa.Float(), nullable=True),
        sa.Column('daily_protein_target', sa.Float(), nullable=True),
        sa.Column('daily_carbs_target', sa.Float(), nullable=True),
        sa.Column('daily_fat_target', sa.Float(), nullable=True),
        sa.Column('dietary_preferences', sa.JSON(), nullable=False),
        sa.Column('allergies', sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_family_profiles_id', 'family_profiles', ['id'])
    op.create_index('ix_family_profiles_user_id', 'family_profiles', ['user_id'])

    op.create_table(
        'recipes',
        sa.Column('id', sa.Integer(), primary_key=True),
        _user_fk(),
        sa.Column('recipe_name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('servings', sa.Integer(), nullable=False),
        sa.Column('prep_time_minutes', sa.Integer(), nullable=True),
        sa.Column('cook_time_minutes', sa.Integer(), nullable=True),
        sa.Column('meal_type', sa.String(), nullable=True),
        sa.Column('cuisine', sa.String(), nullable=True),
        sa.Column('instructions', sa.Text(), nullable=True),
        sa.Column('calories_per_serving', sa.Float(), nullable=True),
        sa.Column('protein_per_serving', sa.Float(), nullable=True),
        sa.Column('carbs_per_serving', sa.Float(), nullable=True),
        sa.Column('fat_per_serving', sa.Float(), nullable=True),
        sa.Column('is_favorite', sa.Boolean(), nullable=False),
        sa.Column('is_archived', sa.Boolean(), nullable=False),
        sa.Column('times_used', sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_recipes_id', 'recipes', ['id'])
    op.create_index('ix_recipes_user_id', 'recipes', ['user_id'])
    op.create_index('idx_recipe_user_name', 'recipes', ['user_id', 'recipe_name'])

    op.create_table(
        'recipe_ingredients',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column(
            'recipe_id', sa.Integer(), sa.ForeignKey('recipes.id', ondelete='CASCADE'), nullable=False
        ),
        sa.Column('ingredient_name', sa.String(), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('unit', sa.String(), nullable=False),
        sa.Column('category', sa.String(), nullable=True),
        sa.Column('notes', sa.String(), nullable=True),
    )
    op.create_index('ix_recipe_ingredients_id', 'recipe_ingredients', ['id'])
    op.create_index('ix_recipe_ingredients_recipe_id', 'recipe_ingredients', ['recipe_id'])

    op.create_table(
        'meal_plans',
        sa.Column('id', sa.Integer(), primary_key=True),
        _user_fk(),
        sa.Column('week_start_date', sa.Date(), nullable=False),
        sa.Column('week_end_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('finalized_at', sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_meal_plans_id', 'meal_plans', ['id'])
    op.create_index('ix_meal_plans_user_id', 'meal_plans', ['user_id'])
    op.create_index('idx_meal_plan_user_week', 'meal_plans', ['user_id', 'week_start_date'])

    op.create_table(
        'meals',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column(
            'meal_plan_id', sa.Integer(), sa.ForeignKey('meal_plans.id', ondelete='CASCADE'), nullable=False
        ),
        sa.Column('day_of_week', sa.String(), nullable=False),
        sa.Column('meal_type', sa.String(), nullable=False),
        sa.Column(
            'recipe_id', sa.Integer(), sa.ForeignKey('recipes.id', ondelete='SET NULL'), nullable=True
        ),
        sa.Column('recipe_name', sa.String(), nullable=True),
        sa.Column('servings', sa.Integer(), nullable=True),
        sa.Column('is_leftover', sa.Boolean(), nullable=False),
        sa.Column('notes', sa.String(), nullable=True),
    )
    op.create_index('ix_meals_id', 'meals', ['id'])
    op.create_index('ix_meals_meal_plan_id', 'meals', ['meal_plan_id'])
    op.create_index('ix_meals_recipe_id', 'meals', ['recipe_id'])

    op.create_table(
        'inventory_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        _user_fk(),
        sa.Column('item_name', sa.String(), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('unit', sa.String(), nullable=False),
        sa.Column('category', sa.String(), nullable=False),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('purchase_date', sa.Date(), nullable=True),
        sa.Column('expiry_date', sa.Date(), nullable=True),
        sa.Column('expiry_is_estimated', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('added_by', sa.String(), nullable=False),
        sa.Column('notes', sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_inventory_items_id', 'inventory_items', ['id'])
    op.create_index('ix_inventory_items_user_id', 'inventory_items', ['user_id'])
    op.create_index('idx_inventory_user_active', 'inventory_items', ['user_id', 'is_active'])

    op.create_table(
        'staples',
        sa.Column('id', sa.Integer(), primary_key=True),
        _user_fk(),
        sa.Column('item_name', sa.String(), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('unit', sa.String(), nullable=False),
        sa.Column('category', sa.String(), nullable=True),
        sa.Column('frequency', sa.String(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('last_added_date', sa.Date(), nullable=True),
        sa.Column('notes', sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_staples_id', 'staples', ['id'])
    op.create_index('ix_staples_user_id', 'staples', ['user_id'])

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), primary_key=True),
        _user_fk(),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('brand', sa.String(), nullable=True),
        sa.Column('category', sa.String(), nullable=True),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('unit', sa.String(), nullable=False),
        sa.Column('calories', sa.Float(), nullable=True),
        sa.Column('protein', sa.Float(), nullable=True),
        sa.Column('carbs', sa.Float(), nullable=True),
        sa.Column('fat', sa.Float(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_products_id', 'products', ['id'])
    op.create_index('ix_products_user_id', 'products', ['user_id'])
    op.create_index('idx_product_user_name', 'products', ['user_id', 'name'])

    op.create_table(
        'shopping_list_categories',
        sa.Column('id', sa.Integer(), primary_key=True),
        _user_fk(),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('display_order', sa.Integer(), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False),
    )
    op.create_index('ix_shopping_list_categories_id', 'shopping_list_categories', ['id'])
    op.create_index('ix_shopping_list_categories_user_id', 'shopping_list_categories', ['user_id'])

    op.create_table(
        'shopping_lists',
        sa.Column('id', sa.Integer(), primary_key=True),
        _user_fk(),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('notes', sa.String(), nullable=True),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('category_order', sa.JSON(), nullable=False),
        *_timestamps(),
        sa.Column('finalized_at', sa.DateTime(), nullable=True),
        sa.Column('archived_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_shopping_lists_id', 'shopping_lists', ['id'])
    op.create_index('ix_shopping_lists_user_id', 'shopping_lists', ['user_id'])
    op.create_index('idx_shopping_list_user_status', 'shopping_lists', ['user_id', 'status'])

    op.create_table(
        'shopping_list_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column(
            'shopping_list_id',
            sa.Integer(),
            sa.ForeignKey('shopping_lists.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('item_name', sa.String(), nullable=False),
        sa.Column('original_item_name', sa.String(), nullable=True),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('unit', sa.String(), nullable=False),
        sa.Column('category', sa.String(), nullable=True),
        sa.Column('source', sa.String(), nullable=False),
        sa.Column('source_details', sa.JSON(), nullable=False),
        sa.Column('custom_note', sa.String(), nullable=True),
        sa.Column('priority', sa.String(), nullable=False),
        sa.Column('is_purchased', sa.Boolean(), nullable=False),
        sa.Column('purchased_at', sa.DateTime(), nullable=True),
        sa.Column('is_consolidated', sa.Boolean(), nullable=False),
        sa.Column('in_inventory', sa.Boolean(), nullable=False),
        sa.Column('display_order', sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_shopping_list_items_id', 'shopping_list_items', ['id'])
    op.create_index('ix_shopping_list_items_shopping_list_id', 'shopping_list_items', ['shopping_list_id'])
    op.create_index('idx_item_list_order', 'shopping_list_items', ['shopping_list_id', 'display_order'])
    op.create_index('idx_item_list_purchased', 'shopping_list_items', ['shopping_list_id', 'is_purchased'])

    op.create_table(
        'shopping_list_meal_plans',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column(
            'shopping_list_id',
            sa.Integer(),
            sa.ForeignKey('shopping_lists.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column(
            'meal_plan_id', sa.Integer(), sa.ForeignKey('meal_plans.id', ondelete='CASCADE'), nullable=False
        ),
        sa.Column('imported_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('shopping_list_id', 'meal_plan_id', name='uq_list_meal_plan'),
    )
    op.create_index('ix_shopping_list_meal_plans_id', 'shopping_list_meal_plans', ['id'])
    op.create_index(
        'ix_shopping_list_meal_plans_shopping_list_id', 'shopping_list_meal_plans', ['shopping_list_id']
    )
    op.create_index('ix_shopping_list_meal_plans_meal_plan_id', 'shopping_list_meal_plans', ['meal_plan_id'])

    op.create_table(
        'shopping_list_excluded_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column(
            'shopping_list_id',
            sa.Integer(),
            sa.ForeignKey('shopping_lists.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('item_name', sa.String(), nullable=False),
        sa.Column('recipe_quantity', sa.Float(), nullable=False),
        sa.Column('recipe_unit', sa.String(), nullable=False),
        sa.Column('inventory_quantity', sa.Float(), nullable=False),
        sa.Column(
            'inventory_item_id',
            sa.Integer(),
            sa.ForeignKey('inventory_items.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('added_back_at', sa.DateTime(), nullable=True),
        sa.Column('added_back_quantity', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_shopping_list_excluded_items_id', 'shopping_list_excluded_items', ['id'])
    op.create_index(
        'ix_shopping_list_excluded_items_shopping_list_id', 'shopping_list_excluded_items', ['shopping_list_id']
    )

    op.create_table(
        'staple_imports',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column(
            'staple_id', sa.Integer(), sa.ForeignKey('staples.id', ondelete='CASCADE'), nullable=False
        ),
        sa.Column(
            'shopping_list_id',
            sa.Integer(),
            sa.ForeignKey('shopping_lists.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('imported_at', sa.DateTime(), nullable=False),
        sa.Column('was_force_add', sa.Boolean(), nullable=False),
        sa.Column('finalized_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_staple_imports_id', 'staple_imports', ['id'])
    op.create_index('ix_staple_imports_staple_id', 'staple_imports', ['staple_id'])
    op.create_index('ix_staple_imports_shopping_list_id', 'staple_imports', ['shopping_list_id'])

    op.create_table(
        'conversations',
        sa.Column('id', sa.Integer(), primary_key=True),
        _user_fk(),
        sa.Column(
            'profile_id',
            sa.Integer(),
            sa.ForeignKey('family_profiles.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('title', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_conversations_id', 'conversations', ['id'])
    op.create_index('ix_conversations_user_id', 'conversations', ['user_id'])

    op.create_table(
        'messages',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column(
            'conversation_id',
            sa.Integer(),
            sa.ForeignKey('conversations.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('role', sa.String(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('timestamp', sa.DateTime(), nullable=True),
        sa.Column('context_used', sa.Boolean(), nullable=True),
    )
    op.create_index('ix_messages_id', 'messages', ['id'])
    op.create_index('ix_messages_conversation_id', 'messages', ['conversation_id'])


def downgrade() -> None:
    for table in (
        'messages',
        'conversations',
        'staple_imports',
        'shopping_list_excluded_items',
        'shopping_list_meal_plans',
        'shopping_list_items',
        'shopping_lists',
        'shopping_list_categories',
        'products',
        'staples',
        'inventory_items',
        'meals',
        'meal_plans',
        'recipe_ingredients',
        'recipes',
        'family_profiles',
        'users',
    ):
        op.drop_table(table)
