from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from fortitask.db.base_class import Base


class Submission(Base):
    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, index=True)

    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    file_name = Column(String(255), nullable=False)
    file_url = Column(String(1024), nullable=True)
    file_type = Column(String(255), nullable=True)
    original_size = Column(Integer, nullable=True)
    comment = Column(Text, nullable=True)

    # what the client sent, verbatim, and its parsed form (NULL if unparseable)
    client_reported_raw = Column(String(64), nullable=True)
    client_reported_date = Column(DateTime(timezone=True), nullable=True)

    # stamped by the server, never taken from the request
    uploaded_at = Column(DateTime(timezone=True), nullable=False)

    # snapshot of the timing analysis at upload time
    timing_status = Column(String(64), nullable=False)
    is_late_submission = Column(Boolean, nullable=False, default=False)
    is_modified_after_deadline = Column(Boolean, nullable=False, default=False)
    suspected_time_manipulation = Column(Boolean, nullable=False, default=False)
    is_modified_before_but_submitted_late = Column(Boolean, nullable=False, default=False)

    course = relationship("Course", back_populates="submissions")
    student = relationship("User", back_populates="submissions")
