"""
Demo seed data - loaded into an empty store at startup when seed_demo_data is on.
"""

from datetime import datetime, timezone
from typing import List

from zhide.core.logging import get_logger
from zhide.schemas.schemas import Candidate, CandidateStatus, Job, JobSource
from zhide.services.storage_service import StorageAdapter

logger = get_logger(__name__)


def _date(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, tzinfo=timezone.utc)


def initial_candidates() -> List[Candidate]:
    return [
        Candidate(
            id="c1",
            name="张伟",
            title="市场总监",
            experience_years=10,
            education="复旦大学, 市场营销 MBA",
            skills=["品牌战略", "数字营销", "团队管理", "SaaS增长"],
            current_salary="80万",
            target_salary="120万",
            status=CandidateStatus.unemployed,
            summary="十年亚太区市场经验，曾主导两家SaaS企业的从0到1增长。",
            email="zhangwei@example.com",
        ),
        Candidate(
            id="c2",
            name="王强",
            title="算法专家",
            experience_years=6,
            education="清华大学, 计算机硕士",
            skills=["机器学习", "Python", "PyTorch", "推荐系统", "大模型微调"],
            current_salary="100万",
            target_salary="150万",
            status=CandidateStatus.interviewing,
            summary="专注于高并发推荐引擎，曾在字节跳动核心算法团队任职。",
        ),
        Candidate(
            id="c3",
            name="Lucy Liu",
            title="投资总监",
            experience_years=8,
            education="宾夕法尼亚大学, 金融学",
            skills=["PE/VC", "财务模型", "尽职调查", "医疗赛道"],
            current_salary="150万",
            target_salary="200万",
            status=CandidateStatus.hired,
            summary="拥有顶级美元基金工作背景，主导过3个独角兽项目的B轮融资。",
        ),
    ]


def initial_jobs() -> List[Job]:
    return [
        Job(
            id="j1",
            title="首席营销官 (CMO)",
            company="某AI独角兽企业",
            location="上海",
            salary_range="150万 - 200万",
            requirements=["10年以上经验", "有IPO经验优先", "英语流利"],
            tags=["独家", "Pre-IPO", "期权激励"],
            description="负责独角兽企业的全球市场战略，直接向CEO汇报，推动品牌出海。寻找具有狼性和国际视野的顶级市场操盘手。",
            source=JobSource.exclusive,
            post_date=_date(2023, 10, 24),
        ),
        Job(
            id="j2",
            title="大模型算法科学家",
            company="Future Lab",
            location="北京",
            salary_range="120万 - 180万",
            requirements=["博士学历", "顶会论文", "LLM微调经验"],
            tags=["急招", "核心研发", "弹性工作"],
            description="探索大规模语言模型的前沿边界，拥有顶级的计算资源支持。需要在NeurIPS/ICLR等顶会发表过一作论文。",
            source=JobSource.crawled,
            original_url="https://example.com/jobs/ai-researcher",
            post_date=_date(2023, 10, 22),
        ),
        Job(
            id="j3",
            title="VP of Engineering",
            company="FinTech Secure",
            location="深圳",
            salary_range="200万 - 300万",
            requirements=["金融科技背景", "百人团队管理", "高频交易系统"],
            tags=["保密招聘", "高额奖金"],
            description="统筹管理整个工程团队，负责核心交易系统的稳定性与安全性。需要有处理日均百亿级资金流水的经验。",
            source=JobSource.exclusive,
            post_date=_date(2023, 10, 20),
        ),
        Job(
            id="j4",
            title="资深Java架构师",
            company="云端科技",
            location="杭州",
            salary_range="80万 - 120万",
            requirements=["高并发", "Spring Cloud", "电商背景"],
            tags=["大厂背景", "双休"],
            description="来自互联网公开招聘：负责电商中台的架构升级与性能优化。需要深入理解JVM底层原理。",
            source=JobSource.crawled,
            original_url="https://example.com/jobs/java-arch",
            post_date=_date(2023, 10, 25),
        ),
        Job(
            id="j5",
            title="自动驾驶感知算法负责人",
            company="EV Motors",
            location="苏州",
            salary_range="180万 - 250万",
            requirements=["计算机视觉", "L4自动驾驶", "团队管理"],
            tags=["独家", "造车新势力", "股票激励"],
            description="负责视觉感知算法团队的搭建与管理，直接汇报给CTO。",
            source=JobSource.exclusive,
            post_date=_date(2023, 10, 26),
        ),
    ]


def seed_demo_data(storage: StorageAdapter) -> bool:
    """
    Seed demo candidates and jobs if the store holds neither.
    Returns True if data was inserted.
    """
    if storage.list_candidates() or storage.list_jobs():
        return False

    for candidate in initial_candidates():
        storage.save_candidate(candidate)
    for job in initial_jobs():
        storage.save_job(job)
    logger.info("Seeded demo data: %d candidates, %d jobs",
                len(initial_candidates()), len(initial_jobs()))
    return True
