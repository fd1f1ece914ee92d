ADMIN = "admin"
LECTURER = "lecturer"
STUDENT = "student"
ROLES = (ADMIN, LECTURER, STUDENT)

PASSWORD_SPECIAL_CHARACTERS = '!@#$%^&*(),.?":{}|<>'

DEGREE_OPTIONS = [
    # Faculty of Computing
    {"code": "COM-101", "title": "BSc (Hons) in Information Technology", "faculty": "Faculty of Computing"},
    {"code": "COM-102", "title": "BSc (Hons) in Software Engineering", "faculty": "Faculty of Computing"},
    {"code": "COM-103", "title": "BSc (Hons) in Computer Science", "faculty": "Faculty of Computing"},
    {"code": "COM-104", "title": "BSc (Hons) in Cyber Security", "faculty": "Faculty of Computing"},
    {"code": "COM-105", "title": "BSc (Hons) in Artificial Intelligence", "faculty": "Faculty of Computing"},
    {"code": "COM-106", "title": "BSc (Hons) in Data Science", "faculty": "Faculty of Computing"},
    {"code": "COM-107", "title": "BSc (Hons) in Interactive Media", "faculty": "Faculty of Computing"},
    {"code": "COM-108", "title": "BSc (Hons) in Information Systems Engineering", "faculty": "Faculty of Computing"},
    {"code": "COM-109", "title": "BSc (Hons) in Computer Systems & Networking", "faculty": "Faculty of Computing"},
    # Faculty of Engineering
    {"code": "ENG-201", "title": "BSc (Hons) in Civil Engineering", "faculty": "Faculty of Engineering"},
    {"code": "ENG-202", "title": "BSc (Hons) in Electrical & Electronic Eng.", "faculty": "Faculty of Engineering"},
    {"code": "ENG-203", "title": "BSc (Hons) in Mechanical Engineering", "faculty": "Faculty of Engineering"},
    {"code": "ENG-204", "title": "BSc (Hons) in Mechatronics Engineering", "faculty": "Faculty of Engineering"},
    {"code": "ENG-205", "title": "BSc (Hons) in Materials Engineering", "faculty": "Faculty of Engineering"},
    {"code": "ENG-206", "title": "BSc (Hons) in Quantity Surveying (LJMU)", "faculty": "Faculty of Engineering"},
    # Business School
    {"code": "BUS-301", "title": "BBA (Hons) in Business Management", "faculty": "SLIIT Business School"},
    {"code": "BUS-302", "title": "BBA (Hons) in Accounting & Finance", "faculty": "SLIIT Business School"},
    {"code": "BUS-303", "title": "BBA (Hons) in Marketing Management", "faculty": "SLIIT Business School"},
    {"code": "BUS-304", "title": "BBA (Hons) in Human Capital Management", "faculty": "SLIIT Business School"},
    {"code": "BUS-305", "title": "BBA (Hons) in Business Analytics", "faculty": "SLIIT Business School"},
    {"code": "BUS-306", "title": "BBA (Hons) in Supply Chain Management", "faculty": "SLIIT Business School"},
    {"code": "BUS-307", "title": "BBA (Hons) in Management Information Systems", "faculty": "SLIIT Business School"},
    {"code": "BUS-308", "title": "BBA (Hons) in Quality Management", "faculty": "SLIIT Business School"},
    # Faculty of Humanities & Sciences
    {"code": "HUM-401", "title": "BSc (Hons) in Psychology", "faculty": "Faculty of Humanities & Sciences"},
    {"code": "HUM-402", "title": "BSc (Hons) in Biotechnology", "faculty": "Faculty of Humanities & Sciences"},
    {"code": "HUM-403", "title": "BSc (Hons) in Biomedical Science", "faculty": "Faculty of Humanities & Sciences"},
    {"code": "HUM-404", "title": "BSc (Hons) in Financial Mathematics & Stats", "faculty": "Faculty of Humanities & Sciences"},
    {"code": "HUM-405", "title": "BA in English", "faculty": "Faculty of Humanities & Sciences"},
    {"code": "HUM-406", "title": "B.Ed in Biological Science", "faculty": "Faculty of Humanities & Sciences"},
    {"code": "HUM-407", "title": "B.Ed in Physical Science", "faculty": "Faculty of Humanities & Sciences"},
    {"code": "HUM-408", "title": "B.Ed in English", "faculty": "Faculty of Humanities & Sciences"},
    {"code": "HUM-409", "title": "LLB (Bachelor of Laws)", "faculty": "Faculty of Humanities & Sciences"},
    # School of Architecture
    {"code": "ARC-501", "title": "BSc (Hons) in Architecture", "faculty": "School of Architecture"},
    {"code": "ARC-502", "title": "BA (Hons) in Interior Design (LJMU)", "faculty": "School of Architecture"},
]
DEGREE_CODES = {degree["code"] for degree in DEGREE_OPTIONS}

# (lower bound in percent, letter), checked top down
GRADE_BOUNDARIES = [
    (90, "A+"),
    (85, "A"),
    (80, "A-"),
    (75, "B+"),
    (70, "B"),
    (65, "B-"),
    (60, "C+"),
    (55, "C"),
    (50, "C-"),
    (45, "D+"),
    (40, "D"),
]


def letter_grade(percentage: float) -> str:
    for lower_bound, grade in GRADE_BOUNDARIES:
        if percentage >= lower_bound:
            return grade
    return "F"
