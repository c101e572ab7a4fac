"""
REST API implementation for the GradeTrack service using FastAPI.
"""

from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from fastapi import Depends, FastAPI, Header, HTTPException, Query, status
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..core.assessments import MAX_UPCOMING_DAYS
from ..core.entities import Course, GradeItem, Semester
from ..core.enums import GradeType, SemesterStatus
from ..core.exceptions import (
    AuthenticationError, ConcurrencyError, GradeTrackException,
    ResourceNotFoundError, ValidationError
)
from ..core.gpa import GpaEntry, calculate_gpa
from ..core.grading import GradeEntry, calculate, final_exam_needed, validate_thresholds
from ..services import CourseService, GradeService, ReportService, SemesterService

GRADE_TYPE_PATTERN = r'^(percentage|letters|points)$'
STATUS_PATTERN = r'^(in_progress|completed)$'

Cell = Optional[Union[str, float]]


# Pydantic models for API
class ThresholdModel(BaseModel):
    min_percent: float
    letter: str = Field(..., max_length=5)


class CourseCreate(BaseModel):
    name: str = Field(..., max_length=200)
    credit_hours: Optional[float] = None
    grade_type: str = Field(GradeType.PERCENTAGE.value, pattern=GRADE_TYPE_PATTERN)
    semester_id: Optional[str] = None
    letter_thresholds: Optional[List[ThresholdModel]] = None


class CourseUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    credit_hours: Optional[float] = None
    grade_type: Optional[str] = Field(None, pattern=GRADE_TYPE_PATTERN)
    semester_id: Optional[str] = None


class ThresholdsUpdate(BaseModel):
    thresholds: List[ThresholdModel]


class CourseResponse(BaseModel):
    id: str
    name: str
    credit_hours: float
    grade_type: str
    semester_id: Optional[str] = None
    letter_thresholds: Optional[List[ThresholdModel]] = None
    thresholds: List[ThresholdModel]
    created_at: datetime
    updated_at: datetime
    version: int


class GradeRowUpsert(BaseModel):
    label: Optional[str] = Field(None, max_length=200)
    grade_input: Cell = None
    weight_input: Cell = None
    due_date: Optional[str] = None


class GradeItemResponse(BaseModel):
    id: str
    course_id: str
    client_row_id: str
    label: Optional[str] = None
    grade_input: Optional[str] = None
    weight_input: Optional[str] = None
    grade_type: str
    due_date: Optional[str] = None
    grade: Optional[float] = None
    weight: float
    created_at: datetime
    updated_at: datetime
    version: int


class SemesterCreate(BaseModel):
    name: str = Field(..., max_length=200)
    status: str = Field(SemesterStatus.COMPLETED.value, pattern=STATUS_PATTERN)
    make_current: bool = False


class SemesterUpdate(BaseModel):
    name: str = Field(..., max_length=200)


class SemesterStatusUpdate(BaseModel):
    status: str = Field(..., pattern=STATUS_PATTERN)


class SemesterResponse(BaseModel):
    id: str
    name: str
    status: str
    is_current: bool
    created_at: datetime
    updated_at: datetime
    version: int


class DeletionResponse(BaseModel):
    deleted_id: str
    courses_removed: int = 0
    grades_removed: int = 0
    promoted_semester_id: Optional[str] = None


class OverviewResponse(BaseModel):
    semesters: List[SemesterResponse]
    courses: List[CourseResponse]
    grades: List[GradeItemResponse]
    summary: Dict[str, Any]


class WeightedEntry(BaseModel):
    grade: Cell = None
    weight: Cell = None


class WeightedRequest(BaseModel):
    entries: List[WeightedEntry]
    grade_type: str = Field(GradeType.PERCENTAGE.value, pattern=GRADE_TYPE_PATTERN)
    target: float = 80
    thresholds: Optional[List[ThresholdModel]] = None


class FinalExamRequest(BaseModel):
    current_grade: Cell = None
    final_weight: Cell = None
    target_grade: Cell = None


class GpaEntryModel(BaseModel):
    letter_grade: str
    credit_hours: Cell = None


class GpaRequest(BaseModel):
    entries: List[GpaEntryModel]


_STATUS_BY_ERROR = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (ResourceNotFoundError, status.HTTP_404_NOT_FOUND),
    (ConcurrencyError, status.HTTP_409_CONFLICT),
)


def http_error(error: GradeTrackException) -> HTTPException:
    """Translate a service exception into the matching HTTP error."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=error.message)
    return HTTPException(status_code=500, detail=f"Internal error: {error.message}")


def current_user(x_user_id: Optional[str] = Header(None)) -> Optional[str]:
    """Acting identity, taken from the X-User-Id header set by the identity provider."""
    if x_user_id is None or not x_user_id.strip():
        return None
    return x_user_id.strip()


class GradeTrackRestAPI:
    """REST API implementation for the GradeTrack service."""

    def __init__(self, course_service: CourseService, grade_service: GradeService,
                 semester_service: SemesterService, report_service: ReportService,
                 cors_origins: Optional[List[str]] = None):
        self._course_service = course_service
        self._grade_service = grade_service
        self._semester_service = semester_service
        self._report_service = report_service

        # Create FastAPI app
        self.app = FastAPI(
            title="GradeTrack API",
            description="Course grades, projections and GPA tracking",
            version=__version__,
            docs_url="/docs",
            redoc_url="/redoc"
        )

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins or ["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        self._setup_routes()

    def _setup_routes(self):
        """Setup API routes."""

        @self.app.get("/", response_model=Dict[str, str])
        async def root():
            """Root endpoint."""
            return {
                "message": "GradeTrack API",
                "version": __version__,
                "docs": "/docs"
            }

        @self.app.get("/health", response_model=Dict[str, str])
        async def health_check():
            """Health check endpoint."""
            return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

        # Course endpoints
        @self.app.get("/courses", response_model=List[CourseResponse])
        def list_courses(user_id: Optional[str] = Depends(current_user)):
            """List the caller's courses, newest first."""
            try:
                return [self._course_to_response(c) for c in self._course_service.list_courses(user_id)]
            except GradeTrackException as e:
                raise http_error(e)

        @self.app.post("/courses", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
        def create_course(course_data: CourseCreate, user_id: Optional[str] = Depends(current_user)):
            """Create a new course."""
            try:
                thresholds = course_data.letter_thresholds
                course = self._course_service.create_course(
                    user_id,
                    name=course_data.name,
                    credit_hours=course_data.credit_hours,
                    grade_type=GradeType(course_data.grade_type),
                    semester_id=course_data.semester_id,
                    letter_thresholds=[t.model_dump() for t in thresholds] if thresholds else None
                )
                return self._course_to_response(course)
            except GradeTrackException as e:
                raise http_error(e)

        @self.app.get("/courses/{course_id}", response_model=CourseResponse)
        def get_course(course_id: str, user_id: Optional[str] = Depends(current_user)):
            """Get one of the caller's courses."""
            try:
                return self._course_to_response(self._course_service.get_course(user_id, course_id))
            except GradeTrackException as e:
                raise http_error(e)

        @self.app.patch("/courses/{course_id}", response_model=CourseResponse)
        def update_course(course_id: str, course_data: CourseUpdate,
                          user_id: Optional[str] = Depends(current_user)):
            """Rename a course, change its credits or grade type, or move it between semesters."""
            try:
                changes = course_data.model_dump(exclude_unset=True)
                if changes.get('grade_type') is not None:
                    changes['grade_type'] = GradeType(changes['grade_type'])
                course = self._course_service.update_course(user_id, course_id, changes)
                return self._course_to_response(course)
            except GradeTrackException as e:
                raise http_error(e)

        @self.app.put("/courses/{course_id}/thresholds", response_model=CourseResponse)
        def set_thresholds(course_id: str, scale: ThresholdsUpdate,
                           user_id: Optional[str] = Depends(current_user)):
            """Replace the course's letter scale."""
            try:
                course = self._course_service.set_letter_thresholds(
                    user_id, course_id, [t.model_dump() for t in scale.thresholds]
                )
                return self._course_to_response(course)
            except GradeTrackException as e:
                raise http_error(e)

        @self.app.delete("/courses/{course_id}/thresholds", response_model=CourseResponse)
        def reset_thresholds(course_id: str, user_id: Optional[str] = Depends(current_user)):
            """Go back to the default letter scale."""
            try:
                return self._course_to_response(self._course_service.reset_letter_thresholds(user_id, course_id))
            except GradeTrackException as e:
                raise http_error(e)

        @self.app.delete("/courses/{course_id}", response_model=DeletionResponse)
        def delete_course(course_id: str, user_id: Optional[str] = Depends(current_user)):
            """Delete a course and its grade rows."""
            try:
                return DeletionResponse(**self._course_service.delete_course(user_id, course_id).to_dict())
            except GradeTrackException as e:
                raise http_error(e)

        @self.app.get("/courses/{course_id}/summary", response_model=Dict[str, Any])
        def course_summary(course_id: str, target: Optional[float] = None,
                           user_id: Optional[str] = Depends(current_user)):
            """Averages, letters and the grade needed on the remaining weight."""
            try:
                summary = self._report_service.course_summary(user_id, course_id, target)
                return {
                    "course": self._course_to_response(summary.course).model_dump(mode="json"),
                    "standing": summary.standing.to_dict(),
                    "target": summary.target,
                    "calculation": summary.calculation.to_dict() if summary.calculation else None,
                }
            except GradeTrackException as e:
                raise http_error(e)

        # Grade endpoints
        @self.app.get("/courses/{course_id}/grades", response_model=List[GradeItemResponse])
        def list_course_grades(course_id: str, user_id: Optional[str] = Depends(current_user)):
            """List the caller's grade rows for one course."""
            try:
                return [self._grade_to_response(g) for g in self._grade_service.list_by_course(user_id, course_id)]
            except GradeTrackException as e:
                raise http_error(e)

        @self.app.put("/courses/{course_id}/grades/{row_id}", response_model=GradeItemResponse)
        def upsert_grade_row(course_id: str, row_id: str, row: GradeRowUpsert,
                             user_id: Optional[str] = Depends(current_user)):
            """Create or replace the grade row with this key."""
            try:
                item = self._grade_service.upsert_row(
                    user_id, course_id, row_id,
                    label=row.label,
                    grade_input=_cell_text(row.grade_input),
                    weight_input=_cell_text(row.weight_input),
                    due_date=row.due_date
                )
                return self._grade_to_response(item)
            except GradeTrackException as e:
                raise http_error(e)

        @self.app.delete("/courses/{course_id}/grades/{row_id}", response_model=DeletionResponse)
        def remove_grade_row(course_id: str, row_id: str, user_id: Optional[str] = Depends(current_user)):
            """Delete the grade row with this key."""
            try:
                return DeletionResponse(**self._grade_service.remove_row(user_id, course_id, row_id).to_dict())
            except GradeTrackException as e:
                raise http_error(e)

        @self.app.delete("/courses/{course_id}/grades", response_model=Dict[str, int])
        def remove_course_grades(course_id: str, user_id: Optional[str] = Depends(current_user)):
            """Delete every grade row of a course."""
            try:
                return {"removed": self._grade_service.remove_by_course(user_id, course_id)}
            except GradeTrackException as e:
                raise http_error(e)

        @self.app.get("/grades", response_model=List[GradeItemResponse])
        def list_grades(user_id: Optional[str] = Depends(current_user)):
            """List all of the caller's grade rows, newest first."""
            try:
                return [self._grade_to_response(g) for g in self._grade_service.list_grades(user_id)]
            except GradeTrackException as e:
                raise http_error(e)

        @self.app.get("/grades/dated", response_model=List[GradeItemResponse])
        def list_dated_grades(user_id: Optional[str] = Depends(current_user)):
            """Grade rows with a due date, earliest first."""
            try:
                return [self._grade_to_response(g) for g in self._grade_service.list_dated(user_id)]
            except GradeTrackException as e:
                raise http_error(e)

        @self.app.get("/grades/upcoming", response_model=List[GradeItemResponse])
        def list_upcoming_grades(days: Optional[int] = Query(None, ge=0, le=MAX_UPCOMING_DAYS),
                                 today: Optional[date] = None,
                                 user_id: Optional[str] = Depends(current_user)):
            """Ungraded rows due within the next ``days`` days."""
            try:
                items = self._grade_service.list_upcoming(user_id, today=today, days=days)
                return [self._grade_to_response(g) for g in items]
            except GradeTrackException as e:
                raise http_error(e)

        # Semester endpoints
        @self.app.get("/semesters", response_model=List[SemesterResponse])
        def list_semesters(user_id: Optional[str] = Depends(current_user)):
            """List the caller's semesters, newest first."""
            try:
                return [self._semester_to_response(s) for s in self._semester_service.list_semesters(user_id)]
            except GradeTrackException as e:
                raise http_error(e)

        @self.app.get("/semesters/overview", response_model=OverviewResponse)
        def semesters_overview(user_id: Optional[str] = Depends(current_user)):
            """Semesters, courses and grade rows together with the GPA summary."""
            try:
                overview = self._semester_service.overview(user_id)
                summary = self._report_service.overview_summary(user_id)
                return OverviewResponse(
                    semesters=[self._semester_to_response(s) for s in overview.semesters],
                    courses=[self._course_to_response(c) for c in overview.courses],
                    grades=[self._grade_to_response(g) for g in overview.grades],
                    summary=summary.to_dict()
                )
            except GradeTrackException as e:
                raise http_error(e)

        @self.app.get("/semesters/{semester_id}", response_model=SemesterResponse)
        def get_semester(semester_id: str, user_id: Optional[str] = Depends(current_user)):
            """Get one of the caller's semesters."""
            try:
                return self._semester_to_response(self._semester_service.get_semester(user_id, semester_id))
            except GradeTrackException as e:
                raise http_error(e)

        @self.app.post("/semesters", response_model=SemesterResponse, status_code=status.HTTP_201_CREATED)
        def create_semester(semester_data: SemesterCreate, user_id: Optional[str] = Depends(current_user)):
            """Create a semester; in progress or current ones take over as current."""
            try:
                semester = self._semester_service.create_semester(
                    user_id,
                    name=semester_data.name,
                    status=SemesterStatus(semester_data.status),
                    make_current=semester_data.make_current
                )
                return self._semester_to_response(semester)
            except GradeTrackException as e:
                raise http_error(e)

        @self.app.patch("/semesters/{semester_id}", response_model=SemesterResponse)
        def rename_semester(semester_id: str, semester_data: SemesterUpdate,
                            user_id: Optional[str] = Depends(current_user)):
            """Rename a semester."""
            try:
                semester = self._semester_service.rename_semester(user_id, semester_id, semester_data.name)
                return self._semester_to_response(semester)
            except GradeTrackException as e:
                raise http_error(e)

        @self.app.post("/semesters/{semester_id}/current", response_model=SemesterResponse)
        def set_current_semester(semester_id: str, user_id: Optional[str] = Depends(current_user)):
            """Make a semester the only current one."""
            try:
                return self._semester_to_response(self._semester_service.set_current(user_id, semester_id))
            except GradeTrackException as e:
                raise http_error(e)

        @self.app.put("/semesters/{semester_id}/status", response_model=SemesterResponse)
        def update_semester_status(semester_id: str, status_data: SemesterStatusUpdate,
                                   user_id: Optional[str] = Depends(current_user)):
            """Mark a semester in progress (and current) or completed."""
            try:
                semester = self._semester_service.update_status(
                    user_id, semester_id, SemesterStatus(status_data.status)
                )
                return self._semester_to_response(semester)
            except GradeTrackException as e:
                raise http_error(e)

        @self.app.delete("/semesters/{semester_id}", response_model=DeletionResponse)
        def delete_semester(semester_id: str, user_id: Optional[str] = Depends(current_user)):
            """Delete a semester with its courses and grade rows."""
            try:
                return DeletionResponse(**self._semester_service.delete_semester(user_id, semester_id).to_dict())
            except GradeTrackException as e:
                raise http_error(e)

        # Calculator endpoints
        @self.app.post("/calculator/weighted", response_model=Optional[Dict[str, Any]])
        async def weighted_calculator(request: WeightedRequest):
            """Grade-table calculation without storing anything; null when no row counts."""
            try:
                result = calculate(
                    [GradeEntry(grade=e.grade, weight=e.weight) for e in request.entries],
                    grade_type=GradeType(request.grade_type),
                    target=request.target,
                    thresholds=validate_thresholds(t.model_dump() for t in request.thresholds) if request.thresholds else None
                )
                return result.to_dict() if result else None
            except GradeTrackException as e:
                raise http_error(e)

        @self.app.post("/calculator/final", response_model=Optional[Dict[str, Any]])
        async def final_exam_calculator(request: FinalExamRequest):
            """Score needed on the final exam; null when an input does not parse."""
            result = final_exam_needed(request.current_grade, request.final_weight, request.target_grade)
            return result.to_dict() if result else None

        @self.app.post("/calculator/gpa", response_model=Optional[Dict[str, Any]])
        async def gpa_calculator(request: GpaRequest):
            """Credit-weighted GPA; null when no entry counts."""
            result = calculate_gpa(
                GpaEntry(letter_grade=e.letter_grade, credit_hours=e.credit_hours) for e in request.entries
            )
            return result.to_dict() if result else None

    def _course_to_response(self, course: Course) -> CourseResponse:
        """Convert Course entity to response model."""
        custom = course.letter_thresholds
        return CourseResponse(
            id=course.id,
            name=course.name,
            credit_hours=course.credit_hours,
            grade_type=course.grade_type.value,
            semester_id=course.semester_id,
            letter_thresholds=[ThresholdModel(**t.to_dict()) for t in custom] if custom else None,
            thresholds=[ThresholdModel(**t.to_dict()) for t in course.thresholds],
            created_at=course.created_at,
            updated_at=course.updated_at,
            version=course.version
        )

    def _grade_to_response(self, item: GradeItem) -> GradeItemResponse:
        """Convert GradeItem entity to response model."""
        return GradeItemResponse(
            id=item.id,
            course_id=item.course_id,
            client_row_id=item.client_row_id,
            label=item.label,
            grade_input=item.grade_input,
            weight_input=item.weight_input,
            grade_type=item.grade_type.value,
            due_date=item.due_date,
            grade=item.grade,
            weight=item.weight,
            created_at=item.created_at,
            updated_at=item.updated_at,
            version=item.version
        )

    def _semester_to_response(self, semester: Semester) -> SemesterResponse:
        """Convert Semester entity to response model."""
        return SemesterResponse(
            id=semester.id,
            name=semester.name,
            status=semester.status.value,
            is_current=semester.is_current,
            created_at=semester.created_at,
            updated_at=semester.updated_at,
            version=semester.version
        )


def _cell_text(value: Union[str, float, None]) -> Optional[str]:
    """Grade cells are stored as entered; JSON numbers keep their integer form."""
    if value is None or isinstance(value, str):
        return value
    if float(value).is_integer():
        return str(int(value))
    return str(value)
