import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.assessment import InventoryAnswer, LevelLabel
from app.repositories.assessment import AssessmentRepository
from app.repositories.profile import ProfileRepository


async def test_pending_questions_are_scoped_to_user(database: AsyncSession, test_user, other_user, sample_catalog):
    repo = AssessmentRepository(database)
    answered = sample_catalog.all_question_ids[1]
    database.add(InventoryAnswer(user_id=other_user.id, question_id=sample_catalog.all_question_ids[0], response=3))
    database.add(InventoryAnswer(user_id=test_user.id, question_id=answered, response=4))
    await database.commit()

    pending = await repo.list_pending_questions(test_user.id)

    assert [question.id for question, _ in pending] == [
        qid for qid in sample_catalog.all_question_ids if qid != answered
    ]
    assert all(question.dimension_id == dimension.id for question, dimension in pending)
    assert await repo.count_pending_questions(test_user.id) == 2
    assert await repo.count_pending_questions(other_user.id) == 2
    assert await repo.count_questions() == 3


async def test_compute_dimension_means_only_answered_dimensions(database: AsyncSession, test_user, sample_catalog):
    repo = AssessmentRepository(database)
    judge = sample_catalog.dimension_ids[0]
    q1, q2 = sample_catalog.question_ids[judge]
    await repo.upsert_answers(test_user.id, [(q1, 2), (q2, 5)])
    await database.commit()

    means = await repo.compute_dimension_means(test_user.id)

    assert means == [(judge, pytest.approx(3.5), 2)]


async def test_upsert_answers_updates_in_place(database: AsyncSession, test_user, sample_catalog):
    repo = AssessmentRepository(database)
    question_id = sample_catalog.all_question_ids[0]
    await repo.upsert_answers(test_user.id, [(question_id, 1)])
    await database.commit()
    first = (await repo.get_answers_map(test_user.id, [question_id]))[question_id]

    await repo.upsert_answers(test_user.id, [(question_id, 4)])
    await database.commit()
    second = (await repo.get_answers_map(test_user.id, [question_id]))[question_id]

    assert second.id == first.id
    assert second.response == 4


async def test_get_level_description(database: AsyncSession, incomplete_catalog):
    repo = AssessmentRepository(database)
    dimension_id = incomplete_catalog.dimension_ids[0]

    low = await repo.get_level_description(dimension_id, LevelLabel.low)
    assert low is not None
    assert low.id == incomplete_catalog.description_ids[(dimension_id, LevelLabel.low)]
    assert await repo.get_level_description(dimension_id, LevelLabel.high) is None


async def test_primary_result_uses_lowest_dimension(database: AsyncSession, test_user, sample_catalog):
    repo = AssessmentRepository(database)
    judge, pleaser = sample_catalog.dimension_ids
    # 故意先写入维度ID较大的结果
    await repo.upsert_results(
        test_user.id,
        [
            (pleaser, 4.0, LevelLabel.high, sample_catalog.description_ids[(pleaser, LevelLabel.high)]),
            (judge, 1.0, LevelLabel.low, sample_catalog.description_ids[(judge, LevelLabel.low)]),
        ],
    )
    await database.commit()

    primary = await repo.get_primary_result(test_user.id)

    assert primary is not None
    assert primary.dimension_id == judge


async def test_profile_pointer_creates_profile_once(database: AsyncSession, test_user, sample_catalog):
    repo = AssessmentRepository(database)
    profile_repo = ProfileRepository(database)
    judge = sample_catalog.dimension_ids[0]
    (row,) = await repo.upsert_results(
        test_user.id, [(judge, 2.0, LevelLabel.low, sample_catalog.description_ids[(judge, LevelLabel.low)])]
    )

    first = await profile_repo.set_inventory_result(test_user.id, row.id)
    second = await profile_repo.set_inventory_result(test_user.id, row.id)
    await database.commit()

    assert first.id == second.id
    assert second.inventory_result_id == row.id


async def test_levels_are_stored_as_labels(database: AsyncSession, test_user, sample_catalog):
    repo = AssessmentRepository(database)
    judge = sample_catalog.dimension_ids[0]
    await repo.upsert_results(
        test_user.id, [(judge, 4.5, LevelLabel.high, sample_catalog.description_ids[(judge, LevelLabel.high)])]
    )
    await database.commit()

    stored = await database.execute(
        text("SELECT level FROM inventory_results WHERE user_id = :uid"), {"uid": test_user.id}
    )
    assert stored.scalar_one() == "High"
    descriptions = await database.execute(
        text("SELECT DISTINCT level FROM level_descriptions WHERE dimension_id = :dim"), {"dim": judge}
    )
    assert set(descriptions.scalars().all()) == {"Low", "Moderate", "High"}


async def test_failed_statement_does_not_leak_timing_entry(session_maker):
    async with session_maker() as session:
        connection = await session.connection()
        with pytest.raises(OperationalError):
            await session.execute(text("SELECT * FROM missing_table"))
        assert not connection.sync_connection.info.get("query_start_time")
