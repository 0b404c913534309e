"""
Demonstration events used to seed an empty store on startup.

Dates are relative to the day of `now` (UTC midnight + N days + hours) so
the demo always shows upcoming events. `EventService.bootstrap()` only
uses this when the database has no events or no database is configured.
"""

from datetime import datetime, timedelta, timezone
from typing import List

from models import EventCategory, EventRecord, EventStatus


# (title, description, category, location, day offset, start hour, end hour,
#  requires registration, max attendees, contact, image)
DEMO_EVENTS = [
    ("Community Clean-Up Drive",
     "Join us for a city-wide cleanup initiative. Bring your family and help make Durban cleaner. Refreshments provided.",
     EventCategory.COMMUNITY, "Durban Beachfront", 7, 8, 12, True, 200,
     "cleanup@durban.gov.za", "/images/cleanup.jpg"),
    ("Water Conservation Workshop",
     "Learn practical tips to reduce water usage at home. Expert speakers and hands-on demonstrations.",
     EventCategory.EDUCATION, "City Hall Auditorium", 10, 14, 16, True, 150,
     "water@durban.gov.za", "/images/water-workshop.jpg"),
    ("Road Safety Awareness Campaign",
     "Free road safety training for drivers and pedestrians. Learn about traffic rules and safe driving practices.",
     EventCategory.OTHER, "Moses Mabhida Stadium Parking", 5, 9, 15, False, 0,
     "traffic@durban.gov.za", "/images/road-safety.jpg"),
    ("Municipal Budget Public Hearing",
     "Attend the public hearing for the 2025/26 municipal budget. Your voice matters in city planning.",
     EventCategory.GOVERNMENT, "Durban City Hall", 14, 10, 13, False, 0,
     "budget@durban.gov.za", "/images/budget-hearing.jpg"),
    ("Youth Sports Tournament",
     "Annual youth sports competition featuring soccer, netball, and athletics. Open to ages 12-18.",
     EventCategory.RECREATION, "Kings Park Stadium", 21, 8, 17, True, 500,
     "sports@durban.gov.za", "/images/sports-tournament.jpg"),
    ("Heritage Day Celebration",
     "Celebrate South African heritage with traditional music, dance, and food. Free entry for all.",
     EventCategory.COMMUNITY, "Blue Lagoon Park", 45, 10, 18, False, 0,
     "culture@durban.gov.za", "/images/heritage-day.jpg"),
    ("Free Health Screening",
     "Free blood pressure, diabetes, and HIV testing. Nurses and doctors available for consultation.",
     EventCategory.HEALTH, "Umlazi Community Centre", 3, 8, 14, False, 0,
     "health@durban.gov.za", "/images/health-screening.jpg"),
    ("Small Business Development Workshop",
     "Learn how to start and grow your business. Topics include funding, marketing, and legal compliance.",
     EventCategory.OTHER, "ICC Durban", 12, 9, 16, True, 100,
     "business@durban.gov.za", "/images/business-workshop.jpg"),
    ("Recycling Awareness Day",
     "Learn about recycling and waste management. Drop off recyclables and get free reusable bags.",
     EventCategory.ENVIRONMENT, "Durban Solid Waste Depot", 8, 7, 13, False, 0,
     "waste@durban.gov.za", "/images/recycling.jpg"),
    ("Digital Skills Training",
     "Free computer training for beginners. Learn basic Microsoft Office and internet skills.",
     EventCategory.EDUCATION, "Durban Central Library", 15, 9, 13, True, 30,
     "library@durban.gov.za", "/images/digital-skills.jpg"),
    ("Fire Safety Demonstration",
     "Learn how to prevent and respond to fires. Demonstrations of fire extinguisher use and evacuation procedures.",
     EventCategory.PUBLIC_SAFETY, "Durban Fire Station", 18, 10, 12, False, 0,
     "fire@durban.gov.za", "/images/fire-safety.jpg"),
    ("Community Garden Launch",
     "Join the launch of our new community garden project. Learn about urban farming and get free seedlings.",
     EventCategory.COMMUNITY, "Phoenix Community Park", 9, 8, 11, False, 0,
     "parks@durban.gov.za", "/images/garden.jpg"),
    ("Youth Leadership Summit",
     "Empowering young leaders. Guest speakers, workshops, and networking opportunities for ages 16-25.",
     EventCategory.EDUCATION, "University of KwaZulu-Natal", 30, 8, 17, True, 250,
     "youth@durban.gov.za", "/images/leadership.jpg"),
    ("Emergency Preparedness Training",
     "Learn how to prepare for natural disasters and emergencies. First aid training included.",
     EventCategory.PUBLIC_SAFETY, "Chatsworth Community Hall", 20, 9, 15, True, 80,
     "emergency@durban.gov.za", "/images/emergency.jpg"),
    ("Local Market & Craft Fair",
     "Support local vendors and artists. Fresh produce, handmade crafts, and live entertainment.",
     EventCategory.COMMUNITY, "Victoria Street Market", 11, 7, 14, False, 0,
     "markets@durban.gov.za", "/images/market.jpg"),
    ("Women in Business Conference",
     "Empowering women entrepreneurs. Networking, mentorship, and access to funding opportunities.",
     EventCategory.OTHER, "Durban ICC", 25, 8, 17, True, 300,
     "women.business@durban.gov.za", "/images/women-business.jpg"),
]


def demo_events(now: datetime) -> List[EventRecord]:
    """Build fresh demo records (new ids every call) anchored on `now`."""

    now = now.astimezone(timezone.utc)
    base = now.replace(hour=0, minute=0, second=0, microsecond=0)
    records: List[EventRecord] = []
    for (title, description, category, location, days, start_hour, end_hour,
         registration, max_attendees, contact, image) in DEMO_EVENTS:
        day = base + timedelta(days=days)
        records.append(EventRecord(
            title=title,
            description=description,
            category=category,
            location=location,
            starts_at=day + timedelta(hours=start_hour),
            ends_at=day + timedelta(hours=end_hour),
            status=EventStatus.PUBLISHED,
            requires_registration=registration,
            max_attendees=max_attendees,
            contact_info=contact,
            media_urls=(image,),
            created_at=now,
        ))
    return records
