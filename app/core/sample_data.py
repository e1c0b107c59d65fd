# app/core/sample_data.py
"""Demo tables for a SQLite target database (the classic DEPT/EMP pair)."""

import logging
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Session

from app.core.database import TargetBase

logger = logging.getLogger(__name__)


class Dept(TargetBase):
    """Department reference table."""

    __tablename__ = "DEPT"

    DEPTNO = Column(Integer, primary_key=True)
    DNAME = Column(String(14), nullable=False)
    LOC = Column(String(13), nullable=True)


class Emp(TargetBase):
    """Employee table used by the demo queries."""

    __tablename__ = "EMP"

    EMPNO = Column(Integer, primary_key=True)
    ENAME = Column(String(10), nullable=False)
    JOB = Column(String(9), nullable=True)
    MGR = Column(Integer, nullable=True)
    HIREDATE = Column(DateTime, nullable=True)
    SAL = Column(Numeric(7, 2), nullable=True)
    COMM = Column(Numeric(7, 2), nullable=True)
    DEPTNO = Column(Integer, ForeignKey("DEPT.DEPTNO"), nullable=True)


DEPARTMENTS = [
    (10, "ACCOUNTING", "NEW YORK"),
    (20, "RESEARCH", "DALLAS"),
    (30, "SALES", "CHICAGO"),
    (40, "OPERATIONS", "BOSTON"),
]

EMPLOYEES = [
    (7369, "SMITH", "CLERK", 7902, "1980-12-17", 800, None, 20),
    (7499, "ALLEN", "SALESMAN", 7698, "1981-02-20", 1600, 300, 30),
    (7521, "WARD", "SALESMAN", 7698, "1981-02-22", 1250, 500, 30),
    (7566, "JONES", "MANAGER", 7839, "1981-04-02", 2975, None, 20),
    (7654, "MARTIN", "SALESMAN", 7698, "1981-09-28", 1250, 1400, 30),
    (7698, "BLAKE", "MANAGER", 7839, "1981-05-01", 2850, None, 30),
    (7782, "CLARK", "MANAGER", 7839, "1981-06-09", 2450, None, 10),
    (7788, "SCOTT", "ANALYST", 7566, "1987-04-19", 3000, None, 20),
    (7839, "KING", "PRESIDENT", None, "1981-11-17", 5000, None, 10),
    (7844, "TURNER", "SALESMAN", 7698, "1981-09-08", 1500, 0, 30),
    (7876, "ADAMS", "CLERK", 7788, "1987-05-23", 1100, None, 20),
    (7900, "JAMES", "CLERK", 7698, "1981-12-03", 950, None, 30),
    (7902, "FORD", "ANALYST", 7566, "1981-12-03", 3000, None, 20),
    (7934, "MILLER", "CLERK", 7782, "1982-01-23", 1300, None, 10),
]


def create_sample_data(session: Session) -> None:
    """Create and fill DEPT/EMP once; later calls are no-ops."""
    TargetBase.metadata.create_all(bind=session.get_bind())

    if session.query(Emp).count() > 0:
        logger.info("Sample data already exists. Skipping creation.")
        return

    try:
        session.add_all(Dept(DEPTNO=no, DNAME=name, LOC=loc) for no, name, loc in DEPARTMENTS)
        session.flush()
        session.add_all(
            Emp(
                EMPNO=empno,
                ENAME=ename,
                JOB=job,
                MGR=mgr,
                HIREDATE=datetime.fromisoformat(hired),
                SAL=sal,
                COMM=comm,
                DEPTNO=deptno,
            )
            for empno, ename, job, mgr, hired, sal, comm, deptno in EMPLOYEES
        )
        session.commit()
        logger.info("Sample data created: %d departments, %d employees", len(DEPARTMENTS), len(EMPLOYEES))
    except Exception:
        session.rollback()
        logger.exception("Error creating sample data")
        raise
