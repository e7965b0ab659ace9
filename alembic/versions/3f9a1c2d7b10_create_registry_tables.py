"""Create registry tables for deletion requests and work items

Revision ID: 3f9a1c2d7b10
Revises:
Create Date: 2026-10-19 09:12:44.118204

"""
from alembic import op
import sqlalchemy as sa
import sqlmodel


# revision identifiers, used by Alembic.
revision = '3f9a1c2d7b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'institution',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column('identifier', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_institution_identifier'), 'institution', ['identifier'], unique=True)

    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column('email', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column('institution_id', sa.Integer(), nullable=False),
        sa.Column('role', sqlmodel.sql.sqltypes.AutoString(length=40), nullable=False),
        sa.Column('deactivated_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['institution_id'], ['institution.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_user_email'), 'user', ['email'], unique=True)
    op.create_index(op.f('ix_user_institution_id'), 'user', ['institution_id'], unique=False)

    op.create_table(
        'intellectual_objects',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('institution_id', sa.Integer(), nullable=False),
        sa.Column('identifier', sqlmodel.sql.sqltypes.AutoString(length=1000), nullable=False),
        sa.Column('bag_name', sqlmodel.sql.sqltypes.AutoString(length=1000), nullable=False),
        sa.Column('etag', sqlmodel.sql.sqltypes.AutoString(length=40), nullable=False),
        sa.Column('storage_option', sqlmodel.sql.sqltypes.AutoString(length=40), nullable=False),
        sa.Column('size', sa.Integer(), nullable=False),
        sa.Column('state', sqlmodel.sql.sqltypes.AutoString(length=1), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['institution_id'], ['institution.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_intellectual_objects_identifier'), 'intellectual_objects', ['identifier'], unique=True)
    op.create_index(op.f('ix_intellectual_objects_bag_name'), 'intellectual_objects', ['bag_name'], unique=False)
    op.create_index(op.f('ix_intellectual_objects_institution_id'), 'intellectual_objects', ['institution_id'], unique=False)

    op.create_table(
        'generic_files',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('institution_id', sa.Integer(), nullable=False),
        sa.Column('intellectual_object_id', sa.Integer(), nullable=False),
        sa.Column('identifier', sqlmodel.sql.sqltypes.AutoString(length=1000), nullable=False),
        sa.Column('size', sa.Integer(), nullable=False),
        sa.Column('storage_option', sqlmodel.sql.sqltypes.AutoString(length=40), nullable=False),
        sa.Column('state', sqlmodel.sql.sqltypes.AutoString(length=1), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['institution_id'], ['institution.id']),
        sa.ForeignKeyConstraint(['intellectual_object_id'], ['intellectual_objects.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_generic_files_identifier'), 'generic_files', ['identifier'], unique=True)
    op.create_index(op.f('ix_generic_files_institution_id'), 'generic_files', ['institution_id'], unique=False)
    op.create_index(op.f('ix_generic_files_intellectual_object_id'), 'generic_files', ['intellectual_object_id'], unique=False)

    op.create_table(
        'work_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sqlmodel.sql.sqltypes.AutoString(length=1000), nullable=False),
        sa.Column('etag', sqlmodel.sql.sqltypes.AutoString(length=40), nullable=False),
        sa.Column('bucket', sqlmodel.sql.sqltypes.AutoString(length=1000), nullable=False),
        sa.Column('institution_id', sa.Integer(), nullable=False),
        sa.Column('intellectual_object_id', sa.Integer(), nullable=True),
        sa.Column('generic_file_id', sa.Integer(), nullable=True),
        sa.Column('deletion_request_id', sa.Integer(), nullable=True),
        sa.Column('user', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column('inst_approver', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=True),
        sa.Column('note', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('action', sqlmodel.sql.sqltypes.AutoString(length=40), nullable=False),
        sa.Column('stage', sqlmodel.sql.sqltypes.AutoString(length=40), nullable=False),
        sa.Column('status', sqlmodel.sql.sqltypes.AutoString(length=40), nullable=False),
        sa.Column('outcome', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('bag_date', sa.DateTime(), nullable=True),
        sa.Column('date_processed', sa.DateTime(), nullable=False),
        sa.Column('retry', sa.Boolean(), nullable=False),
        sa.Column('node', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column('pid', sa.Integer(), nullable=False),
        sa.Column('needs_admin_review', sa.Boolean(), nullable=False),
        sa.Column('queued_at', sa.DateTime(), nullable=True),
        sa.Column('size', sa.Integer(), nullable=False),
        sa.Column('stage_started_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['institution_id'], ['institution.id']),
        sa.ForeignKeyConstraint(['intellectual_object_id'], ['intellectual_objects.id']),
        sa.ForeignKeyConstraint(['generic_file_id'], ['generic_files.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_work_items_name'), 'work_items', ['name'], unique=False)
    op.create_index(op.f('ix_work_items_institution_id'), 'work_items', ['institution_id'], unique=False)
    op.create_index(op.f('ix_work_items_intellectual_object_id'), 'work_items', ['intellectual_object_id'], unique=False)
    op.create_index(op.f('ix_work_items_generic_file_id'), 'work_items', ['generic_file_id'], unique=False)
    op.create_index(op.f('ix_work_items_deletion_request_id'), 'work_items', ['deletion_request_id'], unique=False)
    op.create_index(op.f('ix_work_items_action'), 'work_items', ['action'], unique=False)
    op.create_index(op.f('ix_work_items_status'), 'work_items', ['status'], unique=False)

    op.create_table(
        'deletion_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('institution_id', sa.Integer(), nullable=False),
        sa.Column('requested_by_id', sa.Integer(), nullable=False),
        sa.Column('requested_at', sa.DateTime(), nullable=False),
        sa.Column('encrypted_confirmation_token', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column('confirmed_by_id', sa.Integer(), nullable=True),
        sa.Column('confirmed_at', sa.DateTime(), nullable=True),
        sa.Column('cancelled_by_id', sa.Integer(), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.Column('work_item_id', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['institution_id'], ['institution.id']),
        sa.ForeignKeyConstraint(['requested_by_id'], ['user.id']),
        sa.ForeignKeyConstraint(['confirmed_by_id'], ['user.id']),
        sa.ForeignKeyConstraint(['cancelled_by_id'], ['user.id']),
        sa.ForeignKeyConstraint(['work_item_id'], ['work_items.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_deletion_requests_institution_id'), 'deletion_requests', ['institution_id'], unique=False)

    op.create_table(
        'deletion_requests_generic_files',
        sa.Column('deletion_request_id', sa.Integer(), nullable=False),
        sa.Column('generic_file_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['deletion_request_id'], ['deletion_requests.id']),
        sa.ForeignKeyConstraint(['generic_file_id'], ['generic_files.id']),
        sa.PrimaryKeyConstraint('deletion_request_id', 'generic_file_id'),
    )
    op.create_table(
        'deletion_requests_intellectual_objects',
        sa.Column('deletion_request_id', sa.Integer(), nullable=False),
        sa.Column('intellectual_object_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['deletion_request_id'], ['deletion_requests.id']),
        sa.ForeignKeyConstraint(['intellectual_object_id'], ['intellectual_objects.id']),
        sa.PrimaryKeyConstraint('deletion_request_id', 'intellectual_object_id'),
    )

    op.create_table(
        'alerts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('institution_id', sa.Integer(), nullable=False),
        sa.Column('type', sqlmodel.sql.sqltypes.AutoString(length=40), nullable=False),
        sa.Column('subject', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column('content', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('deletion_request_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['institution_id'], ['institution.id']),
        sa.ForeignKeyConstraint(['deletion_request_id'], ['deletion_requests.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_alerts_institution_id'), 'alerts', ['institution_id'], unique=False)
    op.create_index(op.f('ix_alerts_deletion_request_id'), 'alerts', ['deletion_request_id'], unique=False)

    op.create_table(
        'alerts_users',
        sa.Column('alert_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('sent_at', sa.DateTime(), nullable=True),
        sa.Column('read_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['alert_id'], ['alerts.id']),
        sa.ForeignKeyConstraint(['user_id'], ['user.id']),
        sa.PrimaryKeyConstraint('alert_id', 'user_id'),
    )
    op.create_table(
        'alerts_work_items',
        sa.Column('alert_id', sa.Integer(), nullable=False),
        sa.Column('work_item_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['alert_id'], ['alerts.id']),
        sa.ForeignKeyConstraint(['work_item_id'], ['work_items.id']),
        sa.PrimaryKeyConstraint('alert_id', 'work_item_id'),
    )


def downgrade() -> None:
    op.drop_table('alerts_work_items')
    op.drop_table('alerts_users')
    op.drop_table('alerts')
    op.drop_table('deletion_requests_intellectual_objects')
    op.drop_table('deletion_requests_generic_files')
    op.drop_table('deletion_requests')
    op.drop_table('work_items')
    op.drop_table('generic_files')
    op.drop_table('intellectual_objects')
    op.drop_table('user')
    op.drop_table('institution')
