"""
Script to seed a GradeTrack account with sample semesters, courses and grades.
Make sure the server is running before executing this script.

Usage:
    python add_data.py [--user demo-student] [--base-url http://127.0.0.1:8000]
"""

import argparse
import os
import sys

import requests

from gradetrack.config import load_config
from gradetrack.core.exceptions import ConfigurationError

DEFAULT_USER = "demo-student"


def default_base_url() -> str:
    """``GRADETRACK_BASE_URL`` if set, else the local port the service is configured for."""
    env = os.environ.get("GRADETRACK_BASE_URL")
    if env:
        return env.rstrip("/")
    try:
        port = load_config().port
    except ConfigurationError:
        port = 8000
    return f"http://127.0.0.1:{port}"


class SeedClient:
    """Sends every request as one user by carrying the ``X-User-Id`` header on a session."""

    def __init__(self, base_url: str, user_id: str, timeout: float = 5):
        self.base_url = base_url.rstrip("/")
        self.user_id = user_id
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers["X-User-Id"] = user_id

    def check_server(self) -> bool:
        try:
            response = self._session.get(f"{self.base_url}/health", timeout=2)
        except requests.exceptions.RequestException:
            response = None
        if response is not None and response.status_code == 200:
            print(f"[OK] Server is running at {self.base_url}")
            return True
        print(f"[FAIL] No GradeTrack server at {self.base_url}")
        print("\nPlease start the server first:")
        print("  python -m gradetrack.main --port 8000")
        return False

    def call(self, method, path, what, data=None):
        """Send one request and return the decoded body, or None on failure."""
        try:
            response = self._session.request(method, f"{self.base_url}{path}", json=data, timeout=self._timeout)
        except requests.exceptions.RequestException as e:
            print(f"[FAIL] Error on {what}: {e}")
            return None
        if response.status_code >= 400:
            print(f"[FAIL] Failed to {what}: {response.text}")
            return None
        return response.json()


def create_semester(client, name, status="completed", make_current=False):
    semester = client.call("POST", "/semesters", "create semester",
                           {"name": name, "status": status, "make_current": make_current})
    if semester:
        print(f"[OK] Created semester: {name} ({semester['status']})")
    return semester


def create_course(client, name, credit_hours, semester_id=None, grade_type="percentage"):
    course = client.call("POST", "/courses", "create course", {
        "name": name,
        "credit_hours": credit_hours,
        "grade_type": grade_type,
        "semester_id": semester_id
    })
    if course:
        print(f"[OK] Created course: {name} ({credit_hours} credits, {grade_type})")
    return course


def add_grade(client, course, row_id, label, grade, weight, due_date=None):
    """Create or replace one grade row of a course."""
    row = client.call("PUT", f"/courses/{course['id']}/grades/{row_id}", "save grade row", {
        "label": label,
        "grade_input": grade,
        "weight_input": weight,
        "due_date": due_date
    })
    if row:
        print(f"  [OK] {course['name']:28} | {label:16} | {grade or '-':>5} @ {weight}%")
    return row


def show_course_summary(client, course, target=85):
    summary = client.call("GET", f"/courses/{course['id']}/summary?target={target}", "load course summary")
    if not summary or not summary["calculation"]:
        print(f"  {course['name']:28} | no graded work yet")
        return summary
    calc = summary["calculation"]
    needed = calc["needed_grade_on_remainder"]
    needed_text = f"{needed:.1f} needed for {target}" if needed is not None else "fully weighted"
    print(f"  {course['name']:28} | {calc['average_on_graded_work']:6.2f} {calc['average_letter']:3} | {needed_text}")
    return summary


def show_overview(client):
    """Print the per-term and cumulative GPA."""
    overview = client.call("GET", "/semesters/overview", "load overview")
    if not overview:
        return None
    summary = overview["summary"]
    print(f"\n{'='*60}")
    print("GPA Overview")
    print(f"{'='*60}")
    for term in summary["terms"]:
        gpa = f"{term['gpa']:.2f}" if term["gpa"] is not None else "-"
        marker = " (current)" if term["is_current"] else ""
        print(f"  {term['name']:20}{marker:10} | {term['credits']:5.1f} credits | GPA {gpa}")
    cumulative = f"{summary['gpa']:.2f}" if summary["gpa"] is not None else "-"
    print(f"  Cumulative GPA: {cumulative} over {summary['credits']} credits")
    print(f"  Semesters completed: {summary['semesters_completed']}")
    return overview


def seed(client):
    """One finished term graded in full and a current term with work still due."""
    print("Creating semesters...")
    fall = create_semester(client, "Fall 2025")
    spring = create_semester(client, "Spring 2026", status="in_progress")

    print("\nCreating courses...")
    fall_id = fall["id"] if fall else None
    spring_id = spring["id"] if spring else None
    calculus = create_course(client, "Calculus I", 4, fall_id)
    english = create_course(client, "English Composition", 3, fall_id, grade_type="letters")
    data_structures = create_course(client, "Data Structures", 4, spring_id)
    physics = create_course(client, "Physics Lab", 1, spring_id, grade_type="points")
    courses = [c for c in (calculus, english, data_structures, physics) if c]

    print("\nAdding grades...")
    if calculus:
        add_grade(client, calculus, "hw", "Homework", "94", "20")
        add_grade(client, calculus, "mid", "Midterm", "86", "35")
        add_grade(client, calculus, "final", "Final exam", "91", "45")
    if english:
        add_grade(client, english, "essay1", "Essay 1", "A-", "30")
        add_grade(client, english, "essay2", "Essay 2", "B+", "30")
        add_grade(client, english, "portfolio", "Portfolio", "A", "40")
    if data_structures:
        add_grade(client, data_structures, "p1", "Project 1", "88", "15")
        add_grade(client, data_structures, "mid", "Midterm", "79", "30")
        add_grade(client, data_structures, "final", "Final exam", None, "40", due_date="2026-05-12")
    if physics:
        add_grade(client, physics, "lab1", "Lab 1", "18/20", "50")
        add_grade(client, physics, "lab2", "Lab 2", None, "50", due_date="2026-04-20")
    return courses


def main(argv=None):
    parser = argparse.ArgumentParser(description="Seed GradeTrack with sample data")
    parser.add_argument("--user", default=DEFAULT_USER, help="Identity sent as X-User-Id")
    parser.add_argument("--base-url", default=None, help="GradeTrack server URL")
    args = parser.parse_args(argv)

    client = SeedClient(args.base_url or default_base_url(), args.user)

    print("="*60)
    print("GradeTrack - Sample Data")
    print("="*60)
    print(f"Acting as user: {client.user_id}\n")

    if not client.check_server():
        return 1

    courses = seed(client)

    print("\nCourse standings...")
    for course in courses:
        show_course_summary(client, course)

    show_overview(client)

    base, user = client.base_url, client.user_id
    print("\nYou can now:")
    print(f"  - View API docs: {base}/docs")
    print(f"  - List courses: curl -H 'X-User-Id: {user}' {base}/courses")
    print(f"  - Upcoming work: curl -H 'X-User-Id: {user}' {base}/grades/upcoming")
    print()
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n\n[FAIL] Interrupted by user")
        sys.exit(1)
