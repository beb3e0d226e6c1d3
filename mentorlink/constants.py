# mentorlink/constants.py
class ErrorMessages:
    STUDENT_NOT_FOUND = "Student not found"
    MENTOR_NOT_FOUND = "Mentor not found"
    USER_NOT_FOUND = "User not found"
    MENTORSHIP_NOT_FOUND = "No mentorship request exists between this student and mentor"
    UNAUTHORIZED = "Not authorized to act on behalf of this user"
    ALREADY_OPEN = "A mentorship request is already pending or active with this mentor. Refresh to see its current status."
    INVALID_TRANSITION = "This mentorship has already changed. Refresh to see its current status."
    CAPACITY_EXCEEDED = "This mentor just reached their mentee limit. Try the next suggested mentor or ask the mentor to free a slot."
    STORE_UNAVAILABLE = "The mentorship service is temporarily unavailable. Check the request status before trying again."
    DUPLICATE_PROFILE = "A profile already exists for this uid"
    CAPACITY_BELOW_CURRENT = "maxMentees cannot be lower than the mentor's current mentee count"

class BusinessRules:
    MIN_NAME_LENGTH = 1
    MAX_NAME_LENGTH = 100
    MAX_RATING = 5.0
    MAX_TEXT_ENTRY_LENGTH = 2000
