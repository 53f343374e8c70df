import pytest

from chairai.core.exceptions import ProjectError
from chairai.models.project import ProjectStatusEnum
from chairai.repositories.generated_image_repo import GeneratedImageRepository
from chairai.repositories.project_repo import ProjectRepository
from chairai.schemas.common_schema import PaginationQuery
from chairai.schemas.project_schema import ProjectCreate, ProjectsQuery
from chairai.services.project_service import ProjectService

MISSING_ID = "00000000-0000-4000-8000-000000000000"


async def make_command(seed, client, image=None):
    image = image or await seed.image(client)
    category = await seed.category()
    material = await seed.material()
    return ProjectCreate(
        generated_image_id=image.id,
        category_id=category.id,
        material_id=material.id,
        dimensions="120x60 cm",
        budget_range="1000-2000 PLN",
    )


# --- create_project ---

@pytest.mark.asyncio
async def test_create_project_from_unused_image(db, seed):
    client = await seed.client()
    command = await make_command(seed, client)

    project = await ProjectService(db).create_project(command, client)

    assert project.status == ProjectStatusEnum.open
    assert project.proposals_count == 0
    assert project.client_id == client.id
    assert project.generated_image.id == command.generated_image_id
    assert project.category.id == command.category_id
    assert project.material.id == command.material_id

    image = await GeneratedImageRepository(db).get_image_by_id(command.generated_image_id)
    assert image.is_used is True


@pytest.mark.asyncio
async def test_second_project_with_same_image_is_rejected(db, seed):
    client = await seed.client()
    command = await make_command(seed, client)
    service = ProjectService(db)
    await service.create_project(command, client)

    with pytest.raises(ProjectError) as exc_info:
        await service.create_project(command, client)
    assert exc_info.value.code == "IMAGE_ALREADY_USED"
    assert exc_info.value.status_code == 409


@pytest.mark.asyncio
async def test_image_flagged_as_used_is_rejected(db, seed):
    client = await seed.client()
    image = await seed.image(client, is_used=True)
    command = await make_command(seed, client, image=image)

    with pytest.raises(ProjectError) as exc_info:
        await ProjectService(db).create_project(command, client)
    assert exc_info.value.code == "IMAGE_ALREADY_USED"


@pytest.mark.asyncio
async def test_repository_rolls_back_when_image_already_consumed(db, seed):
    client = await seed.client()
    image = await seed.image(client, is_used=True)
    command = await make_command(seed, client, image=image)
    repo = ProjectRepository(db)
    # rollback 之後 Session 內的物件都會 expire
    image_id, client_id = image.id, client.id

    assert await repo.create_project(command, client_id) is None
    assert await repo.find_project_by_generated_image(image_id) is None


@pytest.mark.asyncio
async def test_foreign_image_is_forbidden_before_other_checks(db, seed):
    owner = await seed.client()
    other = await seed.client()
    image = await seed.image(owner)
    command = ProjectCreate(
        generated_image_id=image.id,
        category_id=MISSING_ID,
        material_id=MISSING_ID,
    )

    with pytest.raises(ProjectError) as exc_info:
        await ProjectService(db).create_project(command, other)
    assert exc_info.value.code == "IMAGE_FORBIDDEN"
    assert exc_info.value.status_code == 403


@pytest.mark.asyncio
async def test_missing_image_category_and_material(db, seed):
    client = await seed.client()
    service = ProjectService(db)

    command = await make_command(seed, client)
    with pytest.raises(ProjectError) as exc_info:
        await service.create_project(command.model_copy(update={"generated_image_id": MISSING_ID}), client)
    assert exc_info.value.code == "IMAGE_NOT_FOUND"

    with pytest.raises(ProjectError) as exc_info:
        await service.create_project(command.model_copy(update={"category_id": MISSING_ID}), client)
    assert exc_info.value.code == "CATEGORY_NOT_FOUND"

    with pytest.raises(ProjectError) as exc_info:
        await service.create_project(command.model_copy(update={"material_id": MISSING_ID}), client)
    assert exc_info.value.code == "MATERIAL_NOT_FOUND"


@pytest.mark.asyncio
async def test_artisan_cannot_create_project(db, seed):
    artisan = await seed.artisan()
    command = await make_command(seed, artisan)

    with pytest.raises(ProjectError) as exc_info:
        await ProjectService(db).create_project(command, artisan)
    assert exc_info.value.code == "FORBIDDEN"


# --- list_projects / list_my_projects ---

@pytest.mark.asyncio
async def test_list_projects_filters_and_paginates(db, seed):
    client = await seed.client()
    artisan = await seed.artisan()
    category = await seed.category()
    for _ in range(3):
        await seed.project(client, category=category)
    await seed.project(client, status=ProjectStatusEnum.closed, category=category)
    await seed.project(client)

    service = ProjectService(db)
    result = await service.list_projects(
        ProjectsQuery(page=1, limit=2, status=ProjectStatusEnum.open, category_id=category.id), artisan
    )

    assert result.pagination.total == 3
    assert result.pagination.total_pages == 2
    assert len(result.data) == 2
    assert all(p.status == ProjectStatusEnum.open for p in result.data)
    assert all(p.category.id == category.id for p in result.data)


@pytest.mark.asyncio
async def test_only_artisans_can_browse_projects(db, seed):
    client = await seed.client()
    with pytest.raises(ProjectError) as exc_info:
        await ProjectService(db).list_projects(ProjectsQuery(), client)
    assert exc_info.value.code == "FORBIDDEN"
    assert exc_info.value.status_code == 403


@pytest.mark.asyncio
async def test_list_my_projects_counts_proposals(db, seed):
    client = await seed.client()
    other_client = await seed.client()
    project = await seed.project(client)
    await seed.project(client)
    await seed.project(other_client)
    await seed.proposal(project, await seed.artisan())
    await seed.proposal(project, await seed.artisan())

    result = await ProjectService(db).list_my_projects(PaginationQuery(), client)

    assert result.pagination.total == 2
    counts = {p.id: p.proposals_count for p in result.data}
    assert counts[project.id] == 2
    assert sorted(counts.values()) == [0, 2]


# --- get_project_details ---

@pytest.mark.asyncio
async def test_project_details_visibility(db, seed):
    project, client, accepted_artisan, _ = await seed.accepted_project()
    other_artisan = await seed.artisan()
    other_client = await seed.client()
    service = ProjectService(db)

    details = await service.get_project_details(project.id, client)
    assert details.proposals_count == 1

    assert (await service.get_project_details(project.id, accepted_artisan)).id == project.id

    for user in (other_artisan, other_client):
        with pytest.raises(ProjectError) as exc_info:
            await service.get_project_details(project.id, user)
        assert exc_info.value.code == "PROJECT_FORBIDDEN"


@pytest.mark.asyncio
async def test_any_artisan_can_view_open_project(db, seed):
    project = await seed.project(await seed.client())
    details = await ProjectService(db).get_project_details(project.id, await seed.artisan())
    assert details.status == ProjectStatusEnum.open


@pytest.mark.asyncio
async def test_project_details_not_found(db, seed):
    with pytest.raises(ProjectError) as exc_info:
        await ProjectService(db).get_project_details(MISSING_ID, await seed.client())
    assert exc_info.value.code == "PROJECT_NOT_FOUND"
    assert exc_info.value.status_code == 404


# --- accept_proposal ---

@pytest.mark.asyncio
async def test_accept_proposal_moves_project_in_progress(db, seed):
    client = await seed.client()
    artisan = await seed.artisan()
    project = await seed.project(client)
    proposal = await seed.proposal(project, artisan, price=2500)
    other = await seed.proposal(project, await seed.artisan(), price=3000)

    result = await ProjectService(db).accept_proposal(project.id, proposal.id, client)

    assert result.status == ProjectStatusEnum.in_progress
    assert result.accepted_proposal_id == proposal.id
    assert result.accepted_price == 2500.0

    # 其他提案維持原樣
    assert await ProjectRepository(db).count_proposals(project.id) == 2
    assert other.id != result.accepted_proposal_id


@pytest.mark.asyncio
async def test_accept_proposal_preconditions_leave_status_unchanged(db, seed):
    client = await seed.client()
    artisan = await seed.artisan()
    project = await seed.project(client)
    proposal = await seed.proposal(project, artisan)
    foreign_proposal = await seed.proposal(await seed.project(client), artisan)
    service = ProjectService(db)
    repo = ProjectRepository(db)

    cases = [
        (await seed.client(), proposal.id, "PROJECT_FORBIDDEN"),
        (client, MISSING_ID, "PROPOSAL_NOT_FOUND"),
        (client, foreign_proposal.id, "PROPOSAL_PROJECT_MISMATCH"),
    ]
    for user, proposal_id, code in cases:
        with pytest.raises(ProjectError) as exc_info:
            await service.accept_proposal(project.id, proposal_id, user)
        assert exc_info.value.code == code
        assert (await repo.get_project_by_id(project.id)).status == ProjectStatusEnum.open


@pytest.mark.asyncio
async def test_accept_proposal_twice_reports_not_open(db, seed):
    client = await seed.client()
    project = await seed.project(client)
    first = await seed.proposal(project, await seed.artisan())
    second = await seed.proposal(project, await seed.artisan())
    service = ProjectService(db)

    await service.accept_proposal(project.id, first.id, client)
    with pytest.raises(ProjectError) as exc_info:
        await service.accept_proposal(project.id, second.id, client)
    assert exc_info.value.code == "PROJECT_NOT_OPEN"

    project = await ProjectRepository(db).get_project_by_id(project.id)
    assert project.accepted_proposal_id == first.id


@pytest.mark.asyncio
async def test_conditional_accept_affects_no_rows_when_not_open(db, seed):
    project, _, _, proposal = await seed.accepted_project()
    updated = await ProjectRepository(db).accept_proposal(project.id, proposal.id, 100)
    assert updated == 0


# --- update_project_status ---

@pytest.mark.asyncio
async def test_complete_in_progress_project(db, seed):
    project, client, _, _ = await seed.accepted_project()
    result = await ProjectService(db).update_project_status(project.id, ProjectStatusEnum.completed, client)
    assert result.status == ProjectStatusEnum.completed


@pytest.mark.asyncio
async def test_same_status_is_a_no_op(db, seed):
    project, client, _, _ = await seed.accepted_project()
    before = project.updated_at

    result = await ProjectService(db).update_project_status(project.id, ProjectStatusEnum.in_progress, client)

    assert result.status == ProjectStatusEnum.in_progress
    assert result.updated_at == before


@pytest.mark.asyncio
@pytest.mark.parametrize("current,new", [
    (ProjectStatusEnum.completed, ProjectStatusEnum.in_progress),
    (ProjectStatusEnum.completed, ProjectStatusEnum.open),
    (ProjectStatusEnum.closed, ProjectStatusEnum.open),
    (ProjectStatusEnum.in_progress, ProjectStatusEnum.open),
])
async def test_backward_status_change_is_rejected(db, seed, current, new):
    project, client, _, _ = await seed.accepted_project(status=current)

    with pytest.raises(ProjectError) as exc_info:
        await ProjectService(db).update_project_status(project.id, new, client)
    assert exc_info.value.code == "INVALID_STATUS_TRANSITION"
    assert (await ProjectRepository(db).get_project_by_id(project.id)).status == current


@pytest.mark.asyncio
async def test_open_project_cannot_skip_to_in_progress(db, seed):
    client = await seed.client()
    project = await seed.project(client)
    with pytest.raises(ProjectError) as exc_info:
        await ProjectService(db).update_project_status(project.id, ProjectStatusEnum.in_progress, client)
    assert exc_info.value.code == "INVALID_STATUS_TRANSITION"


@pytest.mark.asyncio
async def test_only_owner_can_update_status(db, seed):
    project, _, artisan, _ = await seed.accepted_project()
    with pytest.raises(ProjectError) as exc_info:
        await ProjectService(db).update_project_status(project.id, ProjectStatusEnum.completed, artisan)
    assert exc_info.value.code == "PROJECT_FORBIDDEN"


@pytest.mark.asyncio
async def test_conditional_status_update_detects_stale_read(db, seed):
    project, _, _, _ = await seed.accepted_project(status=ProjectStatusEnum.completed)
    repo = ProjectRepository(db)

    updated = await repo.update_status(project.id, ProjectStatusEnum.in_progress, ProjectStatusEnum.closed)

    assert updated == 0
    assert (await repo.get_project_by_id(project.id)).status == ProjectStatusEnum.completed
