"""schema core: usuarios, tours, colaboración y encuestas

Revision ID: 0001_schema_core
Revises:
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = '0001_schema_core'
down_revision = None
branch_labels = None
depends_on = None

UUID = postgresql.UUID(as_uuid=True)
JSONB = postgresql.JSONB()


def _ts(name, nullable=False):
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable, server_default=sa.text('now()'))


def upgrade():
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    op.create_table(
        'users',
        sa.Column('id', UUID, primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('role', sa.String(20), nullable=False, server_default='User'),
        _ts('created_at'),
        sa.CheckConstraint("role IN ('Admin', 'Guide', 'User')", name='users_role_check'),
    )

    # -------------------- tours -------------------- #
    op.create_table(
        'tours',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='Draft'),
        sa.Column('post_tour_access_days', sa.Integer, server_default=sa.text('30')),
        sa.Column('enable_discussions', sa.Boolean, server_default=sa.true()),
        _ts('created_at'),
        _ts('updated_at'),
        sa.CheckConstraint('end_date >= start_date', name='tours_date_check'),
        sa.CheckConstraint("status IN ('Draft', 'Pending', 'Completed')", name='tours_status_check'),
    )
    op.create_index('idx_tours_name', 'tours', ['name'])
    op.create_index('idx_tours_status', 'tours', ['status'])

    op.create_table(
        'activities',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('tour_id', sa.Integer, sa.ForeignKey('tours.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(30), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('location_details', sa.Text()),
        sa.Column('linked_activity_id', sa.Integer, sa.ForeignKey('activities.id', ondelete='SET NULL')),
        _ts('created_at'),
        sa.CheckConstraint('end_time >= start_time', name='activities_time_check'),
    )
    op.create_index('idx_activities_tour_id', 'activities', ['tour_id'])
    op.create_index('idx_activities_type', 'activities', ['type'])
    op.create_index('idx_activities_linked_activity_id', 'activities', ['linked_activity_id'])

    # -------------------- colaboración -------------------- #
    op.create_table(
        'activity_questions',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('activity_id', sa.Integer, sa.ForeignKey('activities.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('question_text', sa.Text(), nullable=False),
        _ts('created_at'),
    )
    op.create_index('idx_activity_questions_activity_id', 'activity_questions', ['activity_id'])
    op.create_index('idx_activity_questions_user_id', 'activity_questions', ['user_id'])

    op.create_table(
        'notes',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('user_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('activity_id', sa.Integer, sa.ForeignKey('activities.id', ondelete='CASCADE'), nullable=False),
        sa.Column('question_id', sa.Integer, sa.ForeignKey('activity_questions.id', ondelete='SET NULL')),
        sa.Column('question_text_snapshot', sa.Text()),
        sa.Column('title', sa.String(255)),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('is_private', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('tags', JSONB),
        sa.Column('attachments', JSONB),
        _ts('created_at'),
        _ts('updated_at'),
    )
    op.create_index('idx_notes_user_id', 'notes', ['user_id'])
    op.create_index('idx_notes_activity_id', 'notes', ['activity_id'])
    op.create_index('idx_notes_question_id', 'notes', ['question_id'])

    op.create_table(
        'discussions',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('tour_id', sa.Integer, sa.ForeignKey('tours.id', ondelete='CASCADE'), nullable=False),
        sa.Column('activity_id', sa.Integer, sa.ForeignKey('activities.id', ondelete='CASCADE')),
        sa.Column('created_by', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('is_pinned', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('is_locked', sa.Boolean, nullable=False, server_default=sa.false()),
        _ts('created_at'),
        _ts('updated_at'),
    )
    op.create_index('idx_discussions_tour_id', 'discussions', ['tour_id'])
    op.create_index('idx_discussions_activity_id', 'discussions', ['activity_id'])

    op.create_table(
        'discussion_messages',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('discussion_id', sa.Integer, sa.ForeignKey('discussions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('parent_message_id', sa.Integer, sa.ForeignKey('discussion_messages.id', ondelete='CASCADE')),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('media_urls', JSONB),
        sa.Column('is_edited', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('edited_at', sa.DateTime(timezone=True)),
        _ts('created_at'),
    )
    op.create_index('idx_discussion_messages_discussion_id', 'discussion_messages', ['discussion_id'])
    op.create_index('idx_discussion_messages_user_id', 'discussion_messages', ['user_id'])
    op.create_index('idx_discussion_messages_parent_id', 'discussion_messages', ['parent_message_id'])

    op.create_table(
        'message_reactions',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('message_id', sa.Integer, sa.ForeignKey('discussion_messages.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('reaction', sa.String(50), nullable=False),
        _ts('created_at'),
        sa.UniqueConstraint('message_id', 'user_id', 'reaction', name='message_reactions_once'),
    )
    op.create_index('idx_message_reactions_message_id', 'message_reactions', ['message_id'])

    op.create_table(
        'discussion_teams',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('discussion_activity_id', sa.Integer, sa.ForeignKey('activities.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('order_index', sa.Integer, nullable=False, server_default='0'),
        _ts('created_at'),
        _ts('updated_at'),
        sa.UniqueConstraint('discussion_activity_id', 'name', name='discussion_teams_unique_name'),
    )
    op.create_index('idx_discussion_teams_activity_id', 'discussion_teams', ['discussion_activity_id'])

    op.create_table(
        'discussion_questions',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('discussion_activity_id', sa.Integer, sa.ForeignKey('activities.id', ondelete='CASCADE'), nullable=False),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('order_index', sa.Integer, nullable=False),
        sa.Column('is_required', sa.Boolean, server_default=sa.true()),
        _ts('created_at'),
        _ts('updated_at'),
        sa.UniqueConstraint('discussion_activity_id', 'order_index', name='discussion_questions_unique_order'),
    )
    op.create_index('idx_discussion_questions_activity_id', 'discussion_questions', ['discussion_activity_id'])

    op.create_table(
        'discussion_team_notes',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('team_id', sa.Integer, sa.ForeignKey('discussion_teams.id', ondelete='CASCADE'), nullable=False),
        sa.Column('question_id', sa.Integer, sa.ForeignKey('discussion_questions.id', ondelete='SET NULL')),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('attachments', JSONB),
        sa.Column('created_by', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        _ts('created_at'),
        _ts('updated_at'),
    )
    op.create_index('idx_discussion_team_notes_team_id', 'discussion_team_notes', ['team_id'])
    op.create_index('idx_discussion_team_notes_question_id', 'discussion_team_notes', ['question_id'])

    # -------------------- encuestas -------------------- #
    op.create_table(
        'surveys',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('type', sa.String(30), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='DRAFT'),
        sa.Column('tour_id', sa.Integer, sa.ForeignKey('tours.id', ondelete='CASCADE')),
        sa.Column('activity_id', sa.Integer, sa.ForeignKey('activities.id', ondelete='CASCADE')),
        sa.Column('created_by', UUID, sa.ForeignKey('users.id', ondelete='SET NULL')),
        _ts('created_at'),
        _ts('updated_at'),
        sa.Column('published_at', sa.DateTime(timezone=True)),
        sa.Column('archived_at', sa.DateTime(timezone=True)),
        sa.Column('public_access_token', UUID),
        sa.Column('allow_public_access', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('public_access_created_at', sa.DateTime(timezone=True)),
        sa.Column('public_access_expires_at', sa.DateTime(timezone=True)),
        sa.CheckConstraint('NOT (tour_id IS NOT NULL AND activity_id IS NOT NULL)', name='survey_link_check'),
    )
    op.create_index('idx_surveys_type', 'surveys', ['type'])
    op.create_index('idx_surveys_status', 'surveys', ['status'])
    op.create_index('idx_surveys_tour_id', 'surveys', ['tour_id'])
    op.create_index('idx_surveys_activity_id', 'surveys', ['activity_id'])
    op.create_index('idx_surveys_public_access_token', 'surveys', ['public_access_token'])

    op.create_table(
        'survey_questions',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('survey_id', sa.Integer, sa.ForeignKey('surveys.id', ondelete='CASCADE'), nullable=False),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('question_type', sa.String(30), nullable=False),
        sa.Column('is_required', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('order_index', sa.Integer, nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('validation_rules', JSONB),
        _ts('created_at'),
        sa.UniqueConstraint('survey_id', 'order_index', name='survey_questions_unique_order'),
    )
    op.create_index('idx_survey_questions_survey_id', 'survey_questions', ['survey_id'])

    op.create_table(
        'survey_question_options',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('question_id', sa.Integer, sa.ForeignKey('survey_questions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('option_text', sa.Text(), nullable=False),
        sa.Column('order_index', sa.Integer, nullable=False),
        sa.Column('is_other', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.UniqueConstraint('question_id', 'order_index', name='survey_question_options_unique_order'),
    )
    op.create_index('idx_survey_question_options_question_id', 'survey_question_options', ['question_id'])

    op.create_table(
        'survey_responses',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('survey_id', sa.Integer, sa.ForeignKey('surveys.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE')),
        _ts('started_at'),
        sa.Column('submitted_at', sa.DateTime(timezone=True)),
        sa.Column('is_complete', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('metadata', JSONB),
        sa.Column('respondent_email', sa.String(255)),
        sa.Column('respondent_name', sa.String(255)),
        sa.Column('is_anonymous', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.CheckConstraint(
            '(is_anonymous = false AND user_id IS NOT NULL) OR '
            '(is_anonymous = true AND respondent_email IS NOT NULL AND user_id IS NULL)',
            name='check_anonymous_response_email',
        ),
    )
    op.create_index('idx_survey_responses_survey_id', 'survey_responses', ['survey_id'])
    op.create_index('idx_survey_responses_user_id', 'survey_responses', ['user_id'])
    op.create_index('idx_survey_responses_submitted_at', 'survey_responses', ['submitted_at'])
    # Solo una respuesta autenticada por (encuesta, usuario); las anónimas quedan fuera
    op.create_index(
        'survey_responses_unique_user', 'survey_responses', ['survey_id', 'user_id'],
        unique=True, postgresql_where=sa.text('user_id IS NOT NULL'),
    )

    op.create_table(
        'survey_question_responses',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('response_id', sa.Integer, sa.ForeignKey('survey_responses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('question_id', sa.Integer, sa.ForeignKey('survey_questions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('text_response', sa.Text()),
        sa.Column('number_response', sa.Numeric()),
        sa.Column('date_response', sa.Date()),
        sa.Column('selected_option_ids', postgresql.ARRAY(sa.Integer)),
        sa.Column('rating_response', sa.Integer),
        _ts('created_at'),
        sa.UniqueConstraint('response_id', 'question_id', name='uq_answer_per_question_response'),
        sa.CheckConstraint('rating_response >= 1 AND rating_response <= 5', name='rating_response_range'),
    )
    op.create_index('idx_survey_question_responses_response_id', 'survey_question_responses', ['response_id'])
    op.create_index('idx_survey_question_responses_question_id', 'survey_question_responses', ['question_id'])


def downgrade():
    for table in (
        'survey_question_responses', 'survey_responses', 'survey_question_options', 'survey_questions',
        'surveys', 'discussion_team_notes', 'discussion_questions', 'discussion_teams',
        'message_reactions', 'discussion_messages', 'discussions', 'notes', 'activity_questions',
        'activities', 'tours', 'users',
    ):
        op.drop_table(table)
