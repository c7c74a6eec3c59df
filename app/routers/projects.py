from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from app.core.errors import EngineError, http_status_for
from app.database import SessionLocal
from app.deps.auth import require_auth
from app.schemas.project import ProjectBudgetReport, ProjectBudgetUpdate, ProjectCreate, ProjectResponse
from app.schemas.task import TaskResponse
from app.services import project_service, task_engine

router = APIRouter(prefix="/projects", tags=["Projects"])


@router.post("", response_model=ProjectResponse)
def create_project(payload: ProjectCreate, user_id: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        project = project_service.create_project(
            name=payload.name,
            total_budget=payload.total_budget,
            description=payload.description,
            client=payload.client,
            status=payload.status,
            actor_id=user_id,
            db=db,
        )
        db.commit()
        db.refresh(project)
        return project
    except EngineError as exc:
        db.rollback()
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()


@router.get("", response_model=List[ProjectResponse])
def list_projects(status: Optional[str] = None, _auth: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        return project_service.list_projects(status=status, db=db)
    finally:
        db.close()


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(project_id: int, _auth: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        return project_service.get_project(project_id, db=db)
    except EngineError as exc:
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()


@router.put("/{project_id}/budget", response_model=ProjectResponse)
def update_budget(project_id: int, payload: ProjectBudgetUpdate, user_id: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        project = project_service.update_project_budget(
            project_id, payload.total_budget, actor_id=user_id, db=db
        )
        db.commit()
        db.refresh(project)
        return project
    except EngineError as exc:
        db.rollback()
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()


@router.get("/{project_id}/budget", response_model=ProjectBudgetReport)
def budget_report(project_id: int, _auth: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        return project_service.project_budget_report(project_id, db=db)
    except EngineError as exc:
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()


@router.get("/{project_id}/tasks", response_model=List[TaskResponse])
def list_project_tasks(project_id: int, _auth: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        project_service.get_project(project_id, db=db)
        return task_engine.list_tasks(project_id, db=db)
    except EngineError as exc:
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()
