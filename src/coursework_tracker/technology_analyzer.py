from collections import defaultdict
from typing import Dict, List, Any

from coursework_tracker.metrics import percentage, round_half_up
from coursework_tracker.models import Repository


class TechnologyAnalyzer:
    def __init__(self):
        self.tech_catalogue = {
            "react": ("React", "Frontend"),
            "vue": ("Vue.js", "Frontend"),
            "angular": ("Angular", "Frontend"),
            "next": ("Next.js", "Frontend"),
            "svelte": ("Svelte", "Frontend"),
            "tailwindcss": ("Tailwind CSS", "Frontend"),
            "bootstrap": ("Bootstrap", "Frontend"),
            "express": ("Express.js", "Backend"),
            "fastapi": ("FastAPI", "Backend"),
            "django": ("Django", "Backend"),
            "flask": ("Flask", "Backend"),
            "nestjs": ("NestJS", "Backend"),
            "mongodb": ("MongoDB", "Database"),
            "mongoose": ("MongoDB", "Database"),
            "pg": ("PostgreSQL", "Database"),
            "postgresql": ("PostgreSQL", "Database"),
            "mysql": ("MySQL", "Database"),
            "prisma": ("Prisma", "Database"),
            "sequelize": ("Sequelize", "Database"),
            "sqlite": ("SQLite", "Database"),
            "supabase": ("Supabase", "Database"),
            "firebase": ("Firebase", "Database"),
            "typescript": ("TypeScript", "Language"),
            "vite": ("Vite", "Build Tool"),
            "webpack": ("Webpack", "Build Tool"),
            "jest": ("Jest", "Testing"),
            "pytest": ("pytest", "Testing"),
            "axios": ("Axios", "HTTP Client"),
            "redux": ("Redux", "State Management"),
            "zustand": ("Zustand", "State Management"),
            "pandas": ("Pandas", "Data Science"),
            "numpy": ("NumPy", "Data Science"),
            "tensorflow": ("TensorFlow", "ML/AI"),
            "pytorch": ("PyTorch", "ML/AI"),
            "scikit-learn": ("Scikit-learn", "ML/AI"),
        }

    def normalize(self, tech: str) -> Dict[str, str]:
        name, category = self.tech_catalogue.get(tech.strip().lower(), (tech.strip(), "Other"))
        return {"name": name, "category": category}

    def analyze_tech_stack(self, repositories: List[Repository]) -> Dict[str, Any]:
        tech_counts: Dict[str, Dict[str, Any]] = {}

        for repo in repositories:
            for tech in repo.tech_stack:
                if not tech.strip():
                    continue
                info = self.normalize(tech)
                entry = tech_counts.setdefault(info["name"], {"count": 0, "category": info["category"]})
                entry["count"] += 1

        total_repos = len(repositories)
        technologies = sorted(
            (
                {
                    "name": name,
                    "count": data["count"],
                    "category": data["category"],
                    "percentage": round_half_up(percentage(data["count"], total_repos)),
                }
                for name, data in tech_counts.items()
            ),
            key=lambda t: (-t["count"], t["name"]),
        )

        by_category = defaultdict(list)
        for tech in technologies:
            by_category[tech["category"]].append(tech)

        return {
            "technologies": technologies,
            "by_category": dict(by_category),
            "total_repositories": total_repos,
        }
