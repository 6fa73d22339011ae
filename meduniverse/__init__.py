"""
Medical Universe application backend.

Layout:
- config.py        : settings from environment variables (.env), logging setup
- db.py            : SQLAlchemy engine and sessions
- models.py        : ORM models and domain enums
- auth_*.py        : users, password hashing, JWT tokens
- face_lock.py     : second factor for admin login
- pharmacy.py      : medicine catalogue, cart, orders, product reviews
- doctors.py       : doctor verification, availability, ratings
- appointments.py  : bookings and meeting links
- prescriptions.py : digital prescriptions
- mailer.py        : transactional email (Resend)
- blood.py         : blood donors and blood requests
- hospital.py      : hospital beds, theaters, bed bookings
- recovery.py      : post-surgery recovery programs
- pregnancy.py     : pregnancy profile, tasks, reminders, assistant
- yoga.py          : yoga tasks, assistant and video search
- articles.py      : AI-written health articles
- analyzers.py     : AI analyzers (pets, livestock, crops, plants, lungs)
- spectrogram.py   : lung sound spectrogram (SVG)
- ai_clients.py    : Gemini, OpenAI, Plant.id and YouTube clients
- admin.py         : dashboard, users, notifications, support tickets
- seed.py          : initial data
- cli.py           : maintenance commands
- api_main.py      : FastAPI application (routers in routes/)
"""
